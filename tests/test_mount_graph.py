"""Tests for the cross-file mount graph."""

from textwrap import dedent
from typing import Dict

from analyzers.mount_graph import MountGraphBuilder
from detectors.express_detector import ExpressDetector
from models import MountEdge

ROUTER_SOURCE = "const router = require('express').Router();\nrouter.get('/', h);\nmodule.exports = router;\n"


def build_graph(files: Dict[str, str]) -> MountGraphBuilder:
    detector = ExpressDetector()
    analyses = [
        detector.analyze(file_id, dedent(source))
        for file_id, source in sorted(files.items())
    ]
    return MountGraphBuilder(analyses)


class TestMountEdges:
    """Test MountGraphBuilder.build."""

    def test_require_mount(self):
        graph = build_graph({
            "/proj/app.js": """
                const users = require('./routes/users');
                app.use('/users', users);
            """,
            "/proj/routes/users.js": ROUTER_SOURCE,
        })

        assert graph.build() == {MountEdge("/proj/app.js", "/proj/routes/users.js", "/users")}

    def test_import_mount_with_extension(self):
        graph = build_graph({
            "/proj/src/server.ts": """
                import { usersRouter } from './routes/users.js';
                app.use('/users', usersRouter);
            """,
            "/proj/src/routes/users.ts": ROUTER_SOURCE,
        })

        assert graph.build() == {MountEdge("/proj/src/server.ts", "/proj/src/routes/users.ts", "/users")}

    def test_directory_index(self):
        graph = build_graph({
            "/proj/app.js": """
                const api = require('./routes');
                app.use('/api', api);
            """,
            "/proj/routes/index.js": ROUTER_SOURCE,
        })

        assert graph.build() == {MountEdge("/proj/app.js", "/proj/routes/index.js", "/api")}

    def test_parent_directory(self):
        graph = build_graph({
            "/proj/routes/v1/index.js": """
                const shared = require('../shared');
                router.use('/shared', shared);
            """,
            "/proj/routes/shared.js": ROUTER_SOURCE,
        })

        assert graph.build() == {MountEdge("/proj/routes/v1/index.js", "/proj/routes/shared.js", "/shared")}

    def test_inline_require(self):
        graph = build_graph({
            "/proj/app.js": "app.use('/v1', require('./v1'));\n",
            "/proj/v1.js": ROUTER_SOURCE,
        })

        assert graph.build() == {MountEdge("/proj/app.js", "/proj/v1.js", "/v1")}

    def test_unresolvable_targets_dropped(self):
        graph = build_graph({
            "/proj/app.js": """
                const cors = require('cors');
                const missing = require('./missing');
                app.use(cors);
                app.use('/m', missing);
                app.use('/x', notBoundAnywhere);
            """,
        })

        assert graph.build() == set()

    def test_prefix_uses_source_constants(self):
        graph = build_graph({
            "/proj/app.js": """
                const V = '/v2';
                const users = require('./users');
                app.use(V, users);
            """,
            "/proj/users.js": "const V = '/wrong';\n" + ROUTER_SOURCE,
        })

        assert graph.build() == {MountEdge("/proj/app.js", "/proj/users.js", "/v2")}

    def test_unresolved_prefix_keeps_edge(self):
        graph = build_graph({
            "/proj/app.js": """
                const users = require('./users');
                app.use(process.env.PREFIX, users);
                app.use(users);
            """,
            "/proj/users.js": ROUTER_SOURCE,
        })

        assert graph.build() == {MountEdge("/proj/app.js", "/proj/users.js", "")}

    def test_array_prefix(self):
        graph = build_graph({
            "/proj/app.js": """
                const users = require('./users');
                app.use(['/a', '/b/'], users);
            """,
            "/proj/users.js": ROUTER_SOURCE,
        })

        assert graph.build() == {
            MountEdge("/proj/app.js", "/proj/users.js", "/a"),
            MountEdge("/proj/app.js", "/proj/users.js", "/b"),
        }


class TestAppPrefixes:
    """Test MountGraphBuilder.app_prefixes."""

    def test_longest_resolved_prefix(self):
        graph = build_graph({
            "/proj/app.js": """
                const PREFIX = '/api/v1';
                app.use('/api', api);
                app.use(PREFIX, v1);
                app.use(process.env.SOMETHING_LONGER_THAN_ALL, x);
                app.use('/static', express.static('public'));
            """,
            "/proj/other.js": "router.get('/x', h);\n",
        })

        assert graph.app_prefixes() == {"/proj/app.js": "/api/v1"}

    def test_root_prefix_ignored(self):
        graph = build_graph({"/proj/app.js": "app.use('/', api);\n"})
        assert graph.app_prefixes() == {}
