"""State/store layer.

Slices, the store that owns them, and the selectors and lifecycle helpers
that read from it. The store is the only component allowed to change slice
state.
"""
