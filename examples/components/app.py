"""Nested components -- imports, loops, dynamic paths and isolation.

The page imports a Card component and renders one per feature. Each card
picks a badge component by path at render time. Every card instance gets
its own scope classes, and its stylesheet is emitted once per instance,
rewritten to match only that instance's elements.

Run:
    python app.py
"""

from pathlib import Path

from plenti import Environment, FileSystemLoader

layout_dir = Path(__file__).parent / "layout"
env = Environment(loader=FileSystemLoader(str(layout_dir)), seed=2024)

page = env.render(
    "pages/index.svelte",
    title="Component Demo",
    features=[
        {"name": "Isolation", "desc": "Scoped CSS per instance", "kind": "new"},
        {"name": "Directives", "desc": "If and for blocks", "kind": "plain"},
        {"name": "Hydration", "desc": "Props recomputed in the browser", "kind": "plain"},
    ],
)

output = page.markup
style = page.style
script = page.script


def main() -> None:
    print(output)
    print("<style>", style, "</style>", sep="\n")
    print("<script>", script, "</script>", sep="\n")


if __name__ == "__main__":
    main()
