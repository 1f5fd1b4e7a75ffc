"""Booking lifecycle and payment-confirmation engine.

Import from the submodules directly (``maxed_homes.bookings.engine`` and so on);
the models import :mod:`maxed_homes.bookings.states`, so this package must stay
free of eager imports.
"""
