import json
from pathlib import Path

import pytest

from lambdapack.errors import UnresolvedSpecifierError
from lambdapack.fs import MemoryFileSystem
from lambdapack.manifest import (
    container_boundary,
    dependency_package_root,
    locate_package_root,
    owning_package_root,
)
from lambdapack.models import ResolutionRequest
from lambdapack.observability import StructuredLogger
from lambdapack.resolver import SpecifierResolver, is_builtin, split_package_specifier
from lambdapack.tsconfig import load_alias_map


def _fs() -> MemoryFileSystem:
    return MemoryFileSystem.from_mapping(
        {
            "/app/package.json": json.dumps({"name": "app"}),
            "/app/src/handler.js": "",
            "/app/src/util.js": "",
            "/app/src/data.json": "{}",
            "/app/src/views/index.js": "",
            "/app/src/typed.ts": "",
            "/app/src/typed.d.ts": "",
            "/app/node_modules/left-pad/package.json": json.dumps({"main": "./lib/pad"}),
            "/app/node_modules/left-pad/lib/pad.js": "",
            "/app/node_modules/typed-only/package.json": json.dumps({"types": "dist/index.d.ts"}),
            "/app/node_modules/typed-only/dist/index.d.ts": "",
            "/app/node_modules/@org/kit/package.json": json.dumps({"main": "main.js"}),
            "/app/node_modules/@org/kit/main.js": "",
            "/app/node_modules/@org/kit/extras/more.js": "",
            "/srv/shared/config.js": "",
            "/app/tsconfig.json": json.dumps(
                {"compilerOptions": {"baseUrl": "src", "paths": {"~/*": ["./*"], "views": ["views"]}}}
            ),
        }
    )


def _request(specifier: str, **kwargs: object) -> ResolutionRequest:
    return ResolutionRequest(
        specifier=specifier,
        from_file=Path("/app/src/handler.js"),
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.mark.parametrize(
    ("specifier", "expected"),
    [
        ("./util", "/app/src/util.js"),
        ("./util.js", "/app/src/util.js"),
        ("./data", "/app/src/data.json"),
        ("./views", "/app/src/views/index.js"),
        ("../package.json", "/app/package.json"),
        ("/srv/shared/config", "/srv/shared/config.js"),
        ("left-pad", "/app/node_modules/left-pad/lib/pad.js"),
        ("@org/kit", "/app/node_modules/@org/kit/main.js"),
        ("@org/kit/extras/more", "/app/node_modules/@org/kit/extras/more.js"),
    ],
)
def test_node_resolution(specifier: str, expected: str) -> None:
    resolver = SpecifierResolver(fs=_fs())
    assert resolver.resolve(_request(specifier)) == Path(expected)


def test_typescript_mode_adds_extensions_and_types_field() -> None:
    resolver = SpecifierResolver(fs=_fs())

    with pytest.raises(UnresolvedSpecifierError):
        resolver.resolve(_request("./typed"))
    assert resolver.resolve(_request("./typed", typescript=True)) == Path("/app/src/typed.ts")
    assert resolver.resolve(_request("typed-only", typescript=True)) == Path(
        "/app/node_modules/typed-only/dist/index.d.ts"
    )


def test_alias_map_rewrites_before_package_lookup() -> None:
    fs = _fs()
    resolver = SpecifierResolver(fs=fs, alias_map=load_alias_map(Path("/app/tsconfig.json"), fs=fs))

    assert resolver.resolve(_request("~/util", typescript=True)) == Path("/app/src/util.js")
    assert resolver.resolve(_request("views", typescript=True)) == Path("/app/src/views/index.js")
    # baseUrl alone makes "data" resolvable relative to src/
    assert resolver.resolve(_request("data", typescript=True)) == Path("/app/src/data.json")


def test_builtins_win_over_base_url_but_not_over_paths_patterns() -> None:
    fs = MemoryFileSystem.from_mapping(
        {
            "/app/src/handler.ts": "",
            "/app/src/util.ts": "",
            "/app/src/lib/util/format.ts": "",
            "/app/tsconfig.json": json.dumps(
                {"compilerOptions": {"baseUrl": "src", "paths": {"util/*": ["lib/util/*"]}}}
            ),
        }
    )
    resolver = SpecifierResolver(fs=fs, alias_map=load_alias_map(Path("/app/tsconfig.json"), fs=fs))

    assert resolver.resolve(_request("util", typescript=True)) is None
    assert resolver.resolve(_request("util/format", typescript=True)) == Path(
        "/app/src/lib/util/format.ts"
    )


@pytest.mark.parametrize(
    ("specifier", "builtin"),
    [
        ("fs", True),
        ("fs/promises", True),
        ("node:test", True),
        ("node:fs/promises", True),
        ("buffer/", False),
        ("process/browser", False),
        ("util/format", False),
        ("fsevents", False),
    ],
)
def test_is_builtin_matches_whole_ids_only(specifier: str, builtin: bool) -> None:
    assert is_builtin(specifier) is builtin


def test_trailing_slash_skips_file_candidates() -> None:
    fs = MemoryFileSystem.from_mapping(
        {
            "/app/src/handler.js": "",
            "/app/src/lib.js": "",
            "/app/src/lib/index.js": "",
            "/app/node_modules/buffer/package.json": json.dumps({"main": "index.js"}),
            "/app/node_modules/buffer/index.js": "",
        }
    )
    resolver = SpecifierResolver(fs=fs)

    assert resolver.resolve(_request("./lib")) == Path("/app/src/lib.js")
    assert resolver.resolve(_request("./lib/")) == Path("/app/src/lib/index.js")
    assert resolver.resolve(_request("buffer")) is None
    assert resolver.resolve(_request("buffer/")) == Path("/app/node_modules/buffer/index.js")
    assert resolver.entry_manifests == {Path("/app/node_modules/buffer/package.json")}


def test_search_roots_act_like_node_path() -> None:
    resolver = SpecifierResolver(fs=_fs())

    with pytest.raises(UnresolvedSpecifierError):
        resolver.resolve(_request("shared/config"))
    found = resolver.resolve(_request("shared/config", search_roots=(Path("/srv"),)))

    assert found == Path("/srv/shared/config.js")


def test_builtins_resolve_to_nothing_even_when_strict() -> None:
    logger = StructuredLogger()
    resolver = SpecifierResolver(fs=_fs(), logger=logger)

    assert resolver.resolve(_request("crypto")) is None
    assert resolver.resolve(_request("node:test")) is None
    assert len(logger.records_for_operation("skip_builtin")) == 2


def test_ignore_missing_returns_none() -> None:
    resolver = SpecifierResolver(fs=_fs())

    assert resolver.resolve(_request("not-installed", ignore_missing=True)) is None
    with pytest.raises(UnresolvedSpecifierError) as excinfo:
        resolver.resolve(_request("not-installed"))
    assert "not-installed" in str(excinfo.value)
    assert "/app/src/handler.js" in str(excinfo.value)


def test_split_package_specifier() -> None:
    assert split_package_specifier("lodash") == ("lodash", "")
    assert split_package_specifier("lodash/fp/map") == ("lodash", "fp/map")
    assert split_package_specifier("@types/node") == ("@types/node", "")
    assert split_package_specifier("@org/kit/extras/more") == ("@org/kit", "extras/more")


def test_locate_package_root_walks_up_to_nearest_manifest() -> None:
    fs = _fs()

    assert locate_package_root(Path("/app/src/views/index.js"), fs=fs) == Path("/app")
    assert locate_package_root(Path("/srv/shared/config.js"), fs=fs) is None
    assert (
        locate_package_root(Path("/app/src/util.js"), fs=fs, boundary=Path("/app/src")) is None
    )


def test_dependency_package_root_is_bounded_by_container() -> None:
    fs = _fs()
    more = Path("/app/node_modules/@org/kit/extras/more.js")

    assert container_boundary(more) == Path("/app/node_modules")
    assert dependency_package_root(more, fs=fs) == Path("/app/node_modules/@org/kit")
    assert dependency_package_root(Path("/app/src/util.js"), fs=fs) is None


def test_owning_package_root_stops_below_ceiling() -> None:
    fs = MemoryFileSystem.from_mapping(
        {
            "/app/package.json": "{}",
            "/app/handler.js": "",
            "/app/lib/package.json": "{}",
            "/app/lib/impl.js": "",
            "/app/node_modules/dep/package.json": "{}",
            "/app/node_modules/dep/index.js": "",
        }
    )
    ceiling = Path("/app")

    assert owning_package_root(Path("/app/handler.js"), fs=fs, ceiling=ceiling) is None
    assert owning_package_root(Path("/app/lib/impl.js"), fs=fs, ceiling=ceiling) == Path("/app/lib")
    assert owning_package_root(Path("/app/lib/impl.js"), fs=fs) is None
    assert owning_package_root(Path("/app/node_modules/dep/index.js"), fs=fs) == Path(
        "/app/node_modules/dep"
    )
