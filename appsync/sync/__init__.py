"""Upstream sync: the decision layer for mirroring an app store.

This package provides the primitives for:
- Version precedence: comparing dotted numeric app versions
- Policy: deciding which packages take part in upstream-driven sync
- Classification: turning a local/upstream package pair into one action
- Change sets: folding per-package decisions into a report
"""
