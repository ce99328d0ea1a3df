"""Build a few expressions over concrete tensors and a variable.

Concrete + concrete is computed immediately, variable + concrete is deferred,
and variable * 0 collapses to a concrete zero tensor.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from tensorexpr import DenseBuffer, constant, new_variable, tensor  # noqa: E402


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    a = tensor([1.0, 2.0, 3.0, 4.0, 5.0, 6.0], (2, 3))
    b = tensor([7.0, 8.0, 9.0, 10.0, 11.0, 12.0], (2, 3))

    print(a + b)

    variable, var_id, handle = new_variable(DenseBuffer.constant(0.0, (2, 3)))

    deferred = variable + a
    print(deferred)
    print(deferred.summary())
    print(variable * 0.0)
    print(variable / -1.0)

    handle.set(constant(1.0, (2, 3)).buffer)
    print(f"variable #{var_id} now holds {variable.value}")


if __name__ == "__main__":
    main()
