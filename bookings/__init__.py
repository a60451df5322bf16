"""Booking capacity and notification scheduling.

Everything that must hold regardless of which page or job calls it lives
here: seat accounting for experience dates, the confirmation trigger, the
reminder pass and the delivery log that keeps it idempotent.
"""
