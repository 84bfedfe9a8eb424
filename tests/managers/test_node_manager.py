import json
import unittest
from unittest.mock import mock_open, patch
from converge.core.config import RuleConfig
from converge.core.rule import ConvergenceRule
from converge.managers.base import ManagerError
from converge.managers.javascript import NodeManager, npm_coordinate

LOCK_V1 = {
    "name": "web-app",
    "version": "1.0.0",
    "lockfileVersion": 1,
    "dependencies": {
        "lodash": {"version": "4.17.21"},
        "old-lib": {
            "version": "2.0.0",
            "dependencies": {"lodash": {"version": "3.10.1"}},
        },
    },
}

LOCK_V3 = {
    "name": "web-app",
    "lockfileVersion": 3,
    "packages": {
        "": {
            "name": "web-app",
            "version": "1.0.0",
            "dependencies": {"lodash": "^4.17.0", "old-lib": "^2.0.0", "@babel/core": "^7.0.0"},
            "devDependencies": {"missing-dev": "^1.0.0"},
        },
        "node_modules/lodash": {"version": "4.17.21"},
        "node_modules/old-lib": {"version": "2.0.0", "dependencies": {"lodash": "^3.0.0", "ms": "^2.0.0"}},
        "node_modules/old-lib/node_modules/lodash": {"version": "3.10.1"},
        "node_modules/ms": {"version": "2.1.3", "dependencies": {"old-lib": "^2.0.0"}},
        "node_modules/@babel/core": {"version": "7.24.0", "dependencies": {"ms": "^2.1.0"}},
    },
}


class TestNodeManager(unittest.TestCase):

    def setUp(self):
        self.manager = NodeManager()

    def load(self, data):
        with patch("builtins.open", mock_open(read_data=json.dumps(data))):
            return self.manager.get_dependency_tree()

    def test_npm_coordinate(self):
        self.assertEqual(str(npm_coordinate("@babel/core", "7.0.0")), "babel:core:7.0.0")
        self.assertEqual(str(npm_coordinate("lodash", "4.17.21")), "npm:lodash:4.17.21")

    def test_nested_lockfile(self):
        root = self.load(LOCK_V1)

        self.assertEqual(str(root.artifact), "npm:web-app:1.0.0")
        old_lib = root.children[1]
        self.assertEqual(str(old_lib.children[0].artifact), "npm:lodash:3.10.1")
        self.assertIs(old_lib.children[0].parent, old_lib)

    def test_packages_lockfile_resolution(self):
        root = self.load(LOCK_V3)

        names = [c.artifact.artifact_id for c in root.children]
        self.assertEqual(names, ["lodash", "old-lib", "core"])

        old_lib = root.children[1]
        self.assertEqual([str(c.artifact) for c in old_lib.children], [
            "npm:lodash:3.10.1",
            "npm:ms:2.1.3",
        ])

    def test_packages_lockfile_cycle(self):
        root = self.load(LOCK_V3)

        ms = root.children[1].children[1]
        cycle = ms.children[0]
        self.assertEqual(cycle.artifact.artifact_id, "old-lib")
        self.assertTrue(cycle.cycle)
        self.assertEqual(cycle.children, [])

    def test_shared_package_expanded_once(self):
        root = self.load(LOCK_V3)

        babel_ms = root.children[2].children[0]
        self.assertEqual(babel_ms.artifact.artifact_id, "ms")
        self.assertFalse(babel_ms.cycle)
        self.assertEqual(babel_ms.children, [])

    def test_lodash_conflict_detected(self):
        result = ConvergenceRule(RuleConfig()).check(self.load(LOCK_V3))
        self.assertEqual(list(result.conflicts), ["npm:lodash"])

    def test_invalid_json(self):
        with patch("builtins.open", mock_open(read_data="{not json")):
            with self.assertRaises(ManagerError):
                self.manager.get_dependency_tree()
