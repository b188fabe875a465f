"""release-flow: guarded Alpha -> Beta -> Stable release automation."""

__version__ = "0.4.0"
