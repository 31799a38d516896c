"""Component source parsing.

Three stages turn a component file into something the renderer can walk:

- ``split_template``: fence / markup / script / style segments
- ``process_fence``: imports, props and bindings from the fence
- ``build_control_tree``: directive AST from the markup

"""

from plenti.parser.control_tree import ControlTreeBuilder, build_control_tree
from plenti.parser.fence import FenceResult, Import, make_attr_str, process_fence
from plenti.parser.splitter import Segments, split_template

__all__ = [
    "ControlTreeBuilder",
    "FenceResult",
    "Import",
    "Segments",
    "build_control_tree",
    "make_attr_str",
    "process_fence",
    "split_template",
]
