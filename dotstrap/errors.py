from __future__ import annotations


class BootstrapError(RuntimeError):
    """Fatal environment problem: the run stops here.

    Everything else (a package that will not install, a missing optional
    script) is reported as a warning and the bootstrap carries on.
    """
