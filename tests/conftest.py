"""
Shared fixtures for the ark test suite
"""

import logging

import pytest


def write_files(root, files):
    """Create ``files`` ({relative path: str or bytes}) below ``root``"""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_tree(tmp_path):
    """Factory writing a file tree under tmp_path/<name>"""
    def _make(files, name="proj"):
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        return write_files(root, files)
    return _make


@pytest.fixture
def sample_project(make_tree):
    """A small project with an ignored log, a secret, and an image"""
    return make_tree({
        ".gitignore": "*.log\n",
        "README.md": "# Demo\n\nA demo project.\n",
        "main.go": "package main\n// entry point\nfunc main() {}\n",
        "config.env": "password=secret123\n",
        "debug.log": "noise\n",
        "logo.png": b"\x89PNG\r\n\x1a\n\x00\x00\x00",
        "src/util.go": "package src\n\n/* helper */\nfunc Util() int { return 1 }\n",
    })


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging() replaces root handlers; put them back after each test"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
