"""
Kernel layer.

`curve_quote/kernels/python/` holds the integer-only Q64.64 kernels the quote
engine is built on. They mirror the on-chain settlement arithmetic bit for bit,
so any change here must keep the published quote vectors unchanged.
"""
