import pytest

from ifs_generator.core.presets import get_preset


@pytest.fixture
def sierpinski_rows():
    return get_preset('sierpinski').to_rows()


@pytest.fixture
def fern_rows():
    return get_preset('barnsley_fern').to_rows()


@pytest.fixture
def system_file(tmp_path, sierpinski_rows):
    path = tmp_path / "sierpinski.ifs"
    path.write_text("# test system\n" + "\n".join(" ".join(str(v) for v in row) for row in sierpinski_rows) + "\n")
    return path
