"""State/engine layer.

This package is the single place where state snapshots are transformed:
shape classification, selector policy, patch descriptors, the immutable
update engine and the snapshot store built on top of it.
"""
