import pytest

from gitstore import base
from gitstore import data

@pytest.fixture
def repo(tmp_path):
    with data.change_git_dir(tmp_path):
        base.init()
        yield tmp_path

@pytest.fixture
def identity_env(tmp_path, monkeypatch):
    #keep the user's real ~/.gitconfig and environment out of the tests
    monkeypatch.setenv('HOME', str(tmp_path / 'home'))
    monkeypatch.delenv('GIT_AUTHOR_NAME', raising=False)
    monkeypatch.delenv('GIT_AUTHOR_EMAIL', raising=False)
    return tmp_path / 'home'
