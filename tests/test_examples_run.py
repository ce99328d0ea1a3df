import runpy
from pathlib import Path

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"


def test_simple_compute_runs(capsys) -> None:
    runpy.run_path(str(EXAMPLES_DIR / "simple_compute.py"), run_name="__main__")
    out = capsys.readouterr().out
    assert "BinaryOp" in out
    assert "now holds" in out
