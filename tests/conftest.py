"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

import pytest

FIXTURE_FILES: dict[str, str] = {
    "foo.js": (
        "'use strict';\n"
        "// require('./commented-out')\n"
        "const dep = require('./lib/dep');\n"
        "const { hello } = require(\"dep1\");\n"
        "const fs = require('fs');\n"
        "exports.handler = () => hello(dep, fs);\n"
    ),
    "abs.js": "const dep = require('lib/dep');\nconst hello = require('dep1');\n",
    "ts1.js": "const ts2 = require('@lib/ts2');\nmodule.exports = require('dep1');\n",
    "lib/bar.js": "const dep = require('./dep');\nexports.handler = dep;\n",
    "lib/dep.js": "module.exports = require('dep2');\n",
    "lib/ts2.ts": (
        "import dep from 'lib/dep';\n"
        "import type { Options } from './options';\n"
        "export const run = (opts: Options): string => dep(opts);\n"
    ),
    "tsconfig.json": (
        "{\n"
        "  // aliases used by ts1.js\n"
        '  "compilerOptions": {\n'
        '    "baseUrl": ".",\n'
        '    "paths": { "@lib/*": ["lib/*"] },\n'
        "  },\n"
        "}\n"
    ),
    "node_modules/dep1/package.json": json.dumps({"name": "dep1", "main": "hello.js"}),
    "node_modules/dep1/hello.js": "exports.hello = () => 'hi';\n",
    "node_modules/dep1/unused.js": "module.exports = 'never required';\n",
    "node_modules/dep2/package.json": json.dumps({"name": "dep2", "main": "bye"}),
    "node_modules/dep2/bye.js": "module.exports = () => 'bye';\n",
}


def write_tree(root: Path, files: dict[str, str]) -> Path:
    for relative, contents in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents, encoding="utf-8")
    return root


def relative_paths(paths: Iterable[Path], root: Path) -> list[str]:
    return [path.relative_to(root).as_posix() for path in paths]


@pytest.fixture
def fixtures(tmp_path: Path) -> Path:
    """A small Node.js project with first-party modules and two node_modules packages."""
    return write_tree(tmp_path.resolve() / "fixtures", FIXTURE_FILES)
