import logging
from typing import Dict, List

from rich.markup import escape
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Footer, Header, Label, LoadingIndicator, Markdown, Tree

from converge.__version__ import __version__
from converge.core.config import load_config
from converge.core.model import DependencyNode
from converge.core.report import node_path, render_path
from converge.core.rule import CheckResult, ConvergenceRule
from converge.managers import load_tree

# Log Configuration
logging.basicConfig(
    filename="debug.log",
    level=logging.DEBUG,
    filemode="w",
    format="%(asctime)s - %(levelname)s - %(message)s",
)


def conflict_index(result: CheckResult) -> Dict[int, str]:
    """Maps every conflicting node (by identity) and its ancestors to the conflict key."""
    index = {}
    for key, nodes in result.conflicts.items():
        for node in nodes:
            for step in node_path(node):
                index.setdefault(id(step), key)
    return index


def build_markdown_report(key: str, nodes: List[DependencyNode]) -> str:
    md_output = [f"# (X) {key}\n"]
    versions = ", ".join(str(n.artifact.version) for n in nodes)
    md_output.append(f"**Resolved at {len(nodes)} versions/occurrences: {versions}**\n")

    for i, node in enumerate(nodes, start=1):
        md_output.append(f"### Path {i}\n")
        md_output.append(f"```\n{render_path(node)}```\n")

    return "\n".join(md_output)


def node_label(node: DependencyNode, conflicts: Dict[str, List[DependencyNode]], on_path: bool) -> str:
    artifact = node.artifact
    safe_name = escape(f"{artifact.group_id}:{artifact.artifact_id}")
    safe_ver = escape(artifact.version)

    # Logic for Child Count Indicator
    child_count = len(node.children)
    count_suffix = f" [dim]↳[/] {child_count}" if child_count > 0 else ""
    cycle_suffix = " [dim]⟳[/]" if node.cycle else ""

    if artifact.key in conflicts and any(n is node for n in conflicts[artifact.key]):
        total = len(conflicts[artifact.key])
        return f"[bold red](!) {safe_name}[/] [dim]{safe_ver}[/] [red]({total} versions/occurrences)[/]{cycle_suffix}{count_suffix}"
    if on_path:
        return f"[yellow](›) {safe_name}[/] [dim]{safe_ver}[/]{cycle_suffix}{count_suffix}"
    return f"[green](•) {safe_name} [dim]{safe_ver}[/]{cycle_suffix}{count_suffix}"


class ConflictScreen(ModalScreen):
    """Modal to display every path to a conflicting artifact."""

    DEFAULT_CSS = """
    ConflictScreen {
        align: center middle;
        background: rgba(0, 0, 0, 0.8);
    }
    #dialog {
        padding: 0 1;
        width: 85%;
        height: 85%;
        border: heavy $error;
        background: $surface;
        layout: vertical;
    }
    #title {
        text-align: center;
        text-style: bold;
        background: $error;
        color: white;
        width: 100%;
        padding: 1;
    }
    #content-scroll {
        height: 1fr;
        margin: 1 0;
        overflow-y: auto;
        scrollbar-gutter: stable;
    }
    #close-btn {
        width: 100%;
        dock: bottom;
    }
    """

    def __init__(self, key: str, nodes: List[DependencyNode]) -> None:
        super().__init__()
        self.artifact_key = key
        self.conflict_nodes = nodes

    def compose(self) -> ComposeResult:
        yield Vertical(
            Label(f"[!] {escape(self.artifact_key)}", id="title"),
            VerticalScroll(
                Markdown(build_markdown_report(self.artifact_key, self.conflict_nodes)),
                id="content-scroll"
            ),
            Button("Close (Esc)", variant="error", id="close-btn"),
            id="dialog",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss()

    def key_escape(self) -> None:
        self.dismiss()


class ConvergeApp(App):
    TITLE = "Converge"
    SUB_TITLE = f"v{__version__}"

    DEFAULT_CSS = """
    Screen { layout: vertical; }

    #info-bar {
        height: 3;
        dock: top;
        background: $surface;
        border-bottom: solid $primary;
        align: left middle;
        padding: 0 1;
    }

    .info-label {
        width: auto;
        height: 1;
        padding: 0 2;
        color: $text;
    }

    #tree-container {
        height: 1fr;
        border: none;
        margin: 0 1;
    }
    Tree { padding: 1; background: $surface; }

    #loading-container { height: 100%; align: center middle; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("l", "expand_node", "Expand"),
        Binding("h", "collapse_node", "Collapse"),
        Binding("space", "toggle_node", "Toggle"),
        Binding("enter", "show_details", "Details"),
        Binding("v", "toggle_filter", "Conflicts Only"),
    ]

    show_only_conflicts: bool = False
    total_artifacts: int = 0
    manager_name: str = "..."

    def __init__(self, args=None) -> None:
        super().__init__()
        self.cli_args = args
        self.check_result = CheckResult()
        self.conflict_paths: Dict[int, str] = {}

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Horizontal(id="info-bar"):
            yield Label(f"[b]Context:[/b] [cyan]{self.manager_name}[/]", id="lbl-context", classes="info-label")
            yield Label(f"[b]Artifacts:[/b] [blue]{self.total_artifacts}[/]", id="lbl-total", classes="info-label")
            yield Label(f"[b]Conflicts:[/b] [red]0[/]", id="lbl-conflicts", classes="info-label")
            yield Label(f"[b]Converged:[/b] [green]0[/]", id="lbl-converged", classes="info-label")

        with Container(id="main-area"):
            with Container(id="loading-container"):
                yield LoadingIndicator()
                yield Label("Initializing Converge...", id="status-label")

            with Container(id="tree-container"):
                yield Tree("Root", id="dep-tree")

        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#tree-container").display = False
        self.check_project()

    # --- ACTIONS ---

    def action_cursor_down(self) -> None:
        self.query_one("#dep-tree").action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#dep-tree").action_cursor_up()

    def action_expand_node(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node:
            tree.cursor_node.expand()

    def action_collapse_node(self) -> None:
        tree = self.query_one("#dep-tree")
        node = tree.cursor_node
        if node:
            if node.is_expanded:
                node.collapse()
            elif node.parent:
                tree.select_node(node.parent)
                node.parent.collapse()

    def action_toggle_node(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node:
            tree.cursor_node.toggle()

    def action_show_details(self) -> None:
        tree = self.query_one("#dep-tree")
        if tree.cursor_node:
            self.show_conflict(tree.cursor_node.data)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        self.show_conflict(event.node.data)

    def show_conflict(self, node_data) -> None:
        if node_data is None:
            return

        key = node_data.artifact.key
        if key in self.check_result.conflicts:
            self.push_screen(ConflictScreen(key, self.check_result.conflicts[key]))
        else:
            self.notify("This artifact converges.", severity="information")

    def action_toggle_filter(self) -> None:
        self.show_only_conflicts = not self.show_only_conflicts

        status = "enabled" if self.show_only_conflicts else "disabled"
        severity = "warning" if self.show_only_conflicts else "information"
        msg = "Showing paths to conflicts only." if self.show_only_conflicts else "Showing all artifacts."

        self.notify(f"Filter {status}: {msg}", severity=severity)

        root_data = self.query_one("#dep-tree").root.data
        if root_data:
            self.render_tree(root_data)

    # --- LOGIC ---

    def update_status(self, msg: str) -> None:
        self.query_one("#status-label").update(msg)

    def update_dashboard_ui(self) -> None:
        conflicts = len(self.check_result.conflicts)
        converged = self.total_artifacts - conflicts
        self.query_one("#lbl-context", Label).update(f"[b]Context:[/b] [cyan]{escape(self.manager_name)}[/]")
        self.query_one("#lbl-total", Label).update(f"[b]Artifacts:[/b] [blue]{self.total_artifacts}[/]")
        self.query_one("#lbl-conflicts", Label).update(f"[b]Conflicts:[/b] [red]{conflicts}[/]")
        self.query_one("#lbl-converged", Label).update(f"[b]Converged:[/b] [green]{converged}[/]")

    def show_error(self, message: str) -> None:
        self.query_one("#status-label").update(f"[bold red]Fatal Error:[/]\n{escape(message)}")
        self.query_one("LoadingIndicator").display = False

    @work(thread=False)
    async def check_project(self) -> None:
        try:
            logging.info("Worker started.")
            self.update_status("Detecting project...")

            args = self.cli_args
            config = load_config(getattr(args, "config", "pyproject.toml")).merged(
                getattr(args, "exclude", None),
                getattr(args, "include", None),
                getattr(args, "unique_versions", False),
            )

            self.update_status("Resolving dependency tree...")
            self.manager_name, root_node = load_tree(getattr(args, "tree_file", None))
            self.update_dashboard_ui()

            self.update_status("Checking convergence...")
            self.check_result = ConvergenceRule(config).check(root_node)
            self.conflict_paths = conflict_index(self.check_result)
            self.total_artifacts = len({n.artifact.key for n in iter_nodes(root_node)})

            self.update_dashboard_ui()
            self.render_tree(root_node)

        except Exception as e:
            logging.exception("Fatal error in worker:")
            self.show_error(str(e))

    def render_tree(self, root_node: DependencyNode) -> None:
        tree = self.query_one("#dep-tree")
        tree.clear()
        tree.root.data = root_node
        tree.root.label = f"📂 {escape(str(root_node.artifact))}"
        tree.root.expand()

        conflicts = self.check_result.conflicts

        def add_nodes(tree_node, data_node):
            for child in data_node.children:
                on_path = id(child) in self.conflict_paths
                if self.show_only_conflicts and not on_path:
                    continue

                label = node_label(child, conflicts, on_path)
                new_node = tree_node.add(label, expand=child.expanded, data=child)
                if self.show_only_conflicts:
                    new_node.expand()

                add_nodes(new_node, child)

        add_nodes(tree.root, root_node)
        self.query_one("#loading-container").display = False
        self.query_one("#tree-container").display = True
        tree.focus()


def iter_nodes(node: DependencyNode):
    yield node
    for child in node.children:
        yield from iter_nodes(child)
