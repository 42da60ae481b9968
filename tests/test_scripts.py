import importlib.util
import os
import pytest

SCRIPTS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'scripts')


@pytest.fixture(scope="module")
def run_app():
    location = importlib.util.spec_from_file_location("run_app", os.path.join(SCRIPTS_DIR, "run_app.py"))
    module = importlib.util.module_from_spec(location)
    location.loader.exec_module(module)
    return module


def test_ui_path_points_at_calculator(run_app):
    assert run_app.UI_PATH.exists()
    assert run_app.UI_PATH.name == "app_streamlit.py"


def test_command_passes_extra_args(run_app):
    cmd = run_app.build_command(["--server.port", "8502"])
    assert cmd[1:4] == ["-m", "streamlit", "run"]
    assert cmd[4] == str(run_app.UI_PATH)
    assert cmd[-2:] == ["--server.port", "8502"]


def test_env_prepends_src(run_app):
    src_path = str(run_app.PROJECT_ROOT / "src")
    assert run_app.build_env({})["PYTHONPATH"] == src_path
    env = run_app.build_env({"PYTHONPATH": "other"})
    assert env["PYTHONPATH"] == f"{src_path}{os.pathsep}other"
