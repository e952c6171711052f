import io
import json
import logging
from pathlib import Path

import pytest
from dulwich import porcelain

AUTHOR = b"Test <test@test>"


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("gitversioning")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


class LocalRepo:
    """A throwaway git repository driven through dulwich porcelain."""

    def __init__(self, path: Path):
        self.path = path
        porcelain.init(str(path))

    def write(self, relative_path: str, content: str) -> Path:
        target = self.path / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        return target

    def write_version(self, content, directory: str = "") -> Path:
        """Write a version.json; dicts are dumped as JSON."""
        if not isinstance(content, str):
            content = json.dumps(content)
        name = f"{directory}/version.json" if directory else "version.json"
        return self.write(name, content)

    def commit(self, message: str = "commit", *paths: str) -> str:
        """Stage ``paths`` (or everything written so far) and commit them."""
        if paths:
            staged = [str(self.path / p) for p in paths]
        else:
            staged = [
                str(p)
                for p in self.path.rglob("*")
                if p.is_file() and ".git" not in p.relative_to(self.path).parts
            ]
        porcelain.add(str(self.path), paths=staged)
        commit_sha = porcelain.commit(
            str(self.path),
            message=message.encode(),
            author=AUTHOR,
            committer=AUTHOR,
        )
        return commit_sha.decode("ascii")


@pytest.fixture
def local_git_repo(tmp_path):
    """Create an empty local git repo."""
    repo_dir = tmp_path / "myrepo"
    repo_dir.mkdir()
    return LocalRepo(repo_dir)
