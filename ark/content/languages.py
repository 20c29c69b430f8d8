"""
Language detection for code fences and comment stripping.
"""

import os

LANGUAGE_BY_EXTENSION = {
    ".abap": "abap",
    ".ada": "ada",
    ".ahk": "autohotkey",
    ".apacheconf": "apache",
    ".applescript": "applescript",
    ".as": "actionscript",
    ".bash": "bash",
    ".bat": "bat",
    ".bf": "brainfuck",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".cs": "csharp",
    ".clj": "clojure",
    ".cljs": "clojure",
    ".cmake": "cmake",
    ".coffee": "coffeescript",
    ".css": "css",
    ".dart": "dart",
    ".diff": "diff",
    ".dockerfile": "dockerfile",
    ".el": "emacs-lisp",
    ".erl": "erlang",
    ".ex": "elixir",
    ".exs": "elixir",
    ".go": "go",
    ".groovy": "groovy",
    ".hs": "haskell",
    ".html": "html",
    ".ini": "ini",
    ".java": "java",
    ".js": "javascript",
    ".jsx": "jsx",
    ".json": "json",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".less": "less",
    ".lisp": "lisp",
    ".lua": "lua",
    ".md": "markdown",
    ".markdown": "markdown",
    ".mkd": "markdown",
    ".m": "objectivec",
    ".mm": "objectivec",
    ".php": "php",
    ".pl": "perl",
    ".ps1": "powershell",
    ".py": "python",
    ".r": "r",
    ".rb": "ruby",
    ".rs": "rust",
    ".scala": "scala",
    ".scss": "scss",
    ".sh": "bash",
    ".zsh": "bash",
    ".sql": "sql",
    ".swift": "swift",
    ".tex": "latex",
    ".toml": "toml",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".vue": "vue",
    ".vim": "vim",
    ".xml": "xml",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".txt": "text",
}


def detect_language(path: str) -> str:
    """Code-fence language tag for ``path``, or "" when unknown"""
    base = os.path.basename(path).lower()

    if base == "dockerfile":
        return "dockerfile"
    if base.startswith("makefile"):
        return "makefile"
    if base == "cmakelists.txt":
        return "cmake"
    if base == "build.gradle":
        return "groovy"
    if base == "vagrantfile":
        return "ruby"

    return LANGUAGE_BY_EXTENSION.get(os.path.splitext(base)[1], "")
