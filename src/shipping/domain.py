"""Shipping bounded context — Shipping Label Issuance.

Issues carrier shipping labels for pending orders by driving the carriers'
web portals through a headless browser. Orders are read-only inputs here;
labels are written once per successful issuance and never changed.
"""

from protean.domain import Domain

shipping = Domain(name="shipping")
