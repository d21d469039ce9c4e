import pytest

from ogit import data


@pytest.fixture
def repo(tmp_path):
    with data.change_git_dir(tmp_path):
        data.init()
        yield tmp_path
