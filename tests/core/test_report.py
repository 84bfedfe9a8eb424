import unittest
from converge.core.model import ArtifactCoordinate, DependencyNode
from converge.core.report import build_report, build_reports, node_path, render_path


def node(coord, *children):
    return DependencyNode(ArtifactCoordinate(*coord.split(":")), list(children))


class TestReport(unittest.TestCase):

    def setUp(self):
        self.root = node(
            "com.example:app:1.0",
            node("com.example:libA:1.0", node("commons-lang:commons-lang:2.1")),
            node("com.example:libB:1.0", node("commons-lang:commons-lang:2.4")),
        )
        self.old = self.root.children[0].children[0]
        self.new = self.root.children[1].children[0]

    def test_node_path_is_root_first(self):
        path = [n.artifact.artifact_id for n in node_path(self.old)]
        self.assertEqual(path, ["app", "libA", "commons-lang"])
        self.assertEqual(self.old.depth, 2)

    def test_render_path_indents_by_depth(self):
        rendered = render_path(self.old)
        lines = rendered.splitlines()

        self.assertEqual(len(lines), self.old.depth + 1)
        self.assertEqual(lines, [
            "+-com.example:app:1.0",
            "  +-com.example:libA:1.0",
            "    +-commons-lang:commons-lang:2.1",
        ])
        self.assertTrue(rendered.endswith("\n"))

    def test_render_root(self):
        self.assertEqual(render_path(self.root), "+-com.example:app:1.0\n")

    def test_build_report(self):
        expected = (
            "\nDependency convergence error for commons-lang:commons-lang:2.1 paths to dependency are:\n"
            "+-com.example:app:1.0\n"
            "  +-com.example:libA:1.0\n"
            "    +-commons-lang:commons-lang:2.1\n"
            "and\n"
            "+-com.example:app:1.0\n"
            "  +-com.example:libB:1.0\n"
            "    +-commons-lang:commons-lang:2.4\n"
        )
        self.assertEqual(build_report([self.old, self.new]), expected)

    def test_build_reports_keeps_conflict_order(self):
        conflicts = {"z:z": [self.new, self.old], "a:a": [self.old, self.new]}
        reports = build_reports(conflicts)

        self.assertEqual(len(reports), 2)
        self.assertIn("error for commons-lang:commons-lang:2.4", reports[0])
        self.assertIn("error for commons-lang:commons-lang:2.1", reports[1])

    def test_build_reports_custom_formatter(self):
        reports = build_reports({"k": [self.old, self.new]}, formatter=lambda nodes: f"{len(nodes)} paths")
        self.assertEqual(reports, ["2 paths"])
