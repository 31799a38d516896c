"""plenti template package: parsed components and their rendering.

"""

from plenti.template.assembler import assemble
from plenti.template.core import Component
from plenti.template.page import RenderedPage
from plenti.template.renderer import ComponentRenderer

__all__ = [
    "Component",
    "ComponentRenderer",
    "RenderedPage",
    "assemble",
]
