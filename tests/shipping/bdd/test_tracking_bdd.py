"""BDD tests for shipment tracking and cancellation."""

from pytest_bdd import scenarios

scenarios("features/tracking.feature")
