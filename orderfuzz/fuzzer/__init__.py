"""Negative-path mutation fuzzing for order fulfillment.

Per trial:
  - Eligibility filters build the candidate orders for each mutation kind
  - The selector picks one kind and one order
  - The paired applier corrupts that order in place
  - The executor runs the call and the expected revert is verified
"""
