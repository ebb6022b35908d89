"""
Production Python kernels.

These modules are designed to be:
- deterministic (integer-only, no floats anywhere),
- easy to audit (explicit intermediate variables),
- fixed-width aware (u64 / u128 ranges are checked where settlement checks them).
"""
