"""
Comment stripping.

Block comments are removed first, then every line is trimmed and blank
lines and lines starting with a line-comment prefix are dropped. This is
a text filter, not a parser: comment markers inside string literals are
treated as comments too.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from .languages import detect_language


@dataclass(frozen=True)
class CommentSyntax:
    line_prefixes: Tuple[str, ...] = ()
    block_delimiters: Tuple[Tuple[str, str], ...] = ()


NO_COMMENTS = CommentSyntax()
HASH = CommentSyntax(line_prefixes=("#",))
C_STYLE = CommentSyntax(line_prefixes=("//",), block_delimiters=(("/*", "*/"),))
MARKUP = CommentSyntax(block_delimiters=(("<!--", "-->"),))
CSS = CommentSyntax(block_delimiters=(("/*", "*/"),))

COMMENT_SYNTAX: Dict[str, CommentSyntax] = {}

for _lang in ("bash", "sh", "zsh", "dockerfile", "makefile", "cmake", "groovy", "abap", "ada",
              "autohotkey", "apache", "applescript", "actionscript", "powershell", "r", "ruby",
              "perl", "emacs-lisp", "latex", "python", "yaml", "toml", "ini"):
    COMMENT_SYNTAX[_lang] = HASH

for _lang in ("go", "java", "c", "cpp", "csharp", "javascript", "typescript", "tsx", "jsx",
              "rust", "kotlin", "swift", "dart", "coffeescript", "objectivec"):
    COMMENT_SYNTAX[_lang] = C_STYLE

for _lang in ("html", "xml", "vue"):
    COMMENT_SYNTAX[_lang] = MARKUP

for _lang in ("css", "less", "scss"):
    COMMENT_SYNTAX[_lang] = CSS

for _lang in ("scala", "haskell", "clojure", "lisp", "elixir"):
    COMMENT_SYNTAX[_lang] = CommentSyntax(line_prefixes=("--", ";"))

COMMENT_SYNTAX["vim"] = CommentSyntax(line_prefixes=('"',))
COMMENT_SYNTAX["sql"] = CommentSyntax(line_prefixes=("--",))
COMMENT_SYNTAX["php"] = CommentSyntax(line_prefixes=("//", "#"), block_delimiters=(("/*", "*/"),))


def comment_syntax(language: str) -> CommentSyntax:
    return COMMENT_SYNTAX.get(language, NO_COMMENTS)


def strip_block(text: str, start: str, end: str) -> str:
    """Remove every ``start ... end`` span; an unterminated block runs to the end"""
    out = []
    pos = 0
    while True:
        begin = text.find(start, pos)
        if begin < 0:
            out.append(text[pos:])
            break
        out.append(text[pos:begin])
        finish = text.find(end, begin + len(start))
        if finish < 0:
            break
        pos = finish + len(end)
    return "".join(out)


def strip_comments(text: str, syntax: CommentSyntax) -> str:
    for start, end in syntax.block_delimiters:
        text = strip_block(text, start, end)

    kept = []
    for line in text.split("\n"):
        trimmed = line.strip()
        if not trimmed:
            continue
        if any(trimmed.startswith(prefix) for prefix in syntax.line_prefixes):
            continue
        kept.append(trimmed)
    return "\n".join(kept)


def delete_comments(text: str, path: str) -> str:
    """Strip comments from ``text`` using the language detected from ``path``"""
    return strip_comments(text, comment_syntax(detect_language(path)))
