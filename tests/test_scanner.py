from lambdapack.scanner import extract_specifiers, tokenize


def test_commonjs_and_esm_forms() -> None:
    source = """
import defaultExport from "./default";
import * as ns from './namespace';
import { a, b as c } from "./named";
import main, { helper } from './mixed';
import './side-effect';
export * from "./star";
export * as grouped from './grouped';
export { x } from './reexport';
const lib = require('lib');
const { pick } = require("lodash/pick");
const later = import('./dynamic');
"""
    assert extract_specifiers(source) == (
        "./default",
        "./namespace",
        "./named",
        "./mixed",
        "./side-effect",
        "./star",
        "./grouped",
        "./reexport",
        "lib",
        "lodash/pick",
        "./dynamic",
    )


def test_comments_and_strings_are_not_specifiers() -> None:
    source = """
// const a = require('./line-comment');
/* import b from './block-comment'; */
const text = "require('./in-string')";
const tpl = `import c from './in-template'`;
const re = /require\\('.\\/in-regex'\\)/;
const real = require('./real');
"""
    assert extract_specifiers(source) == ("./real",)


def test_computed_specifiers_are_ignored() -> None:
    source = """
const a = require(name);
const b = require('./prefix-' + name);
const c = require(`./tpl-${name}`);
const d = import(base + '/x');
"""
    assert extract_specifiers(source) == ()


def test_static_template_literal_is_a_specifier() -> None:
    assert extract_specifiers("const x = require(`./static`);") == ("./static",)


def test_member_calls_are_not_require() -> None:
    source = "module.require('./member');\nrequire.resolve('./resolved');\nobj?.import('./opt');"
    assert extract_specifiers(source) == ()


def test_template_substitutions_are_scanned() -> None:
    source = "const s = `${require('./inside')}/${x}`;\nconst t = require('./after');"
    assert extract_specifiers(source) == ("./inside", "./after")


def test_division_is_not_mistaken_for_regex() -> None:
    source = "const ratio = total / count / 2;\nconst next = require('./next');"
    assert extract_specifiers(source) == ("./next",)


def test_export_without_from_does_not_swallow_following_code() -> None:
    source = "export { handler };\nexport const value = 1;\nrequire('./tail');"
    assert extract_specifiers(source) == ("./tail",)


def test_typescript_type_only_imports_are_erased() -> None:
    source = """
import type { Options } from './types';
import type Default from './default-type';
export type { Shape } from './shapes';
import { type Kept, run } from './runtime';
import type from './named-type';
import fs = require('./equals');
import type Legacy = require('./legacy-types');
"""
    assert extract_specifiers(source, typescript=True) == (
        "./runtime",
        "./named-type",
        "./equals",
    )


def test_typescript_syntax_does_not_confuse_the_lexer() -> None:
    source = """
interface Box<T> { value: T }
const parse = <T,>(raw: string): Box<T> => JSON.parse(raw) as Box<T>;
@Injectable()
class Service { #secret = 1; constructor(private readonly dep: Dep) {} }
export default require('./service-impl');
"""
    assert extract_specifiers(source, typescript=True) == ("./service-impl",)


def test_hashbang_and_duplicates() -> None:
    source = "#!/usr/bin/env node\nrequire('./a');\nrequire('./a');\nimport './a';\n"
    assert extract_specifiers(source) == ("./a",)


def test_tokenizer_keeps_escaped_quotes_inside_strings() -> None:
    tokens = tokenize("const s = 'it\\'s'; require(\"./x\")")
    strings = [token.value for token in tokens if token.kind == "string"]
    assert strings == ["it's", "./x"]


def test_unterminated_string_stops_at_line_end() -> None:
    source = "<p>Don't panic</p>;\nrequire('./still-found');"
    assert extract_specifiers(source) == ("./still-found",)
