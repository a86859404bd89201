"""
Version 1 of the API.

Routes are mounted under ``/api`` without a version segment, which is
what the single page client expects.  A breaking change would go into a
new ``v2`` subpackage with its own ``router``.
"""
