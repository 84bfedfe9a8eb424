import unittest
from unittest.mock import MagicMock, patch
from converge.app import ConvergeApp, build_markdown_report, conflict_index, iter_nodes, node_label
from converge.core.model import ArtifactCoordinate, DependencyNode
from converge.core.rule import ConvergenceRule


def node(coord, *children):
    return DependencyNode(ArtifactCoordinate(*coord.split(":")), list(children))


class TestAppHelpers(unittest.TestCase):

    def setUp(self):
        self.root = node(
            "com.example:app:1.0",
            node("com.example:libA:1.0", node("commons-lang:commons-lang:2.1")),
            node("com.example:libB:1.0", node("commons-lang:commons-lang:2.4")),
            node("com.example:libC:1.0"),
        )
        self.result = ConvergenceRule().check(self.root)

    def test_conflict_index_marks_paths(self):
        index = conflict_index(self.result)

        lib_a, lib_b, lib_c = self.root.children
        self.assertIn(id(lib_a), index)
        self.assertIn(id(lib_b.children[0]), index)
        self.assertNotIn(id(lib_c), index)
        self.assertEqual(index[id(lib_a)], "commons-lang:commons-lang")

    def test_node_label_states(self):
        lib_a, _, lib_c = self.root.children
        conflicts = self.result.conflicts

        self.assertIn("(!)", node_label(lib_a.children[0], conflicts, True))
        self.assertIn("(2 versions/occurrences)", node_label(lib_a.children[0], conflicts, True))
        self.assertIn("(›)", node_label(lib_a, conflicts, True))
        self.assertIn("(•)", node_label(lib_c, conflicts, False))
        self.assertIn("↳", node_label(lib_a, conflicts, True))

    def test_markdown_report_lists_every_path(self):
        key = "commons-lang:commons-lang"
        md = build_markdown_report(key, self.result.conflicts[key])

        self.assertIn("# (X) commons-lang:commons-lang", md)
        self.assertIn("### Path 2", md)
        self.assertIn("    +-commons-lang:commons-lang:2.4", md)

    def test_iter_nodes(self):
        self.assertEqual(len(list(iter_nodes(self.root))), 6)


class TestConvergeAppActions(unittest.TestCase):

    def setUp(self):
        self.root = node(
            "com.example:app:1.0",
            node("com.example:libA:1.0", node("commons-lang:commons-lang:2.1")),
            node("com.example:libB:1.0", node("commons-lang:commons-lang:2.4")),
        )
        self.app = ConvergeApp()
        self.app.check_result = ConvergenceRule().check(self.root)

        self.tree = MagicMock()
        self.tree.cursor_node.data = self.root.children[0].children[0]

    def test_show_details_opens_conflict_screen(self):
        with patch.object(self.app, "query_one", return_value=self.tree), \
                patch.object(self.app, "push_screen") as mock_push, \
                patch("converge.app.ConflictScreen") as mock_screen:
            self.app.action_show_details()

        key = "commons-lang:commons-lang"
        mock_screen.assert_called_once_with(key, self.app.check_result.conflicts[key])
        mock_push.assert_called_once_with(mock_screen.return_value)

    def test_show_details_on_converged_artifact(self):
        self.tree.cursor_node.data = self.root.children[0]

        with patch.object(self.app, "query_one", return_value=self.tree), \
                patch.object(self.app, "push_screen") as mock_push, \
                patch.object(self.app, "notify") as mock_notify:
            self.app.action_show_details()

        mock_push.assert_not_called()
        mock_notify.assert_called_once()

    def test_toggle_node(self):
        with patch.object(self.app, "query_one", return_value=self.tree):
            self.app.action_toggle_node()

        self.tree.cursor_node.toggle.assert_called_once_with()
