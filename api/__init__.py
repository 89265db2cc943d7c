"""HTTP adapter over the DotPrint core."""
