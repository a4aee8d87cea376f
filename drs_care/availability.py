"""Availability calculation for a single date.

A service's slot is free unless a booking on that date names the service
as its treatment and takes that slot. Dates and treatment names are
matched by exact string equality.
"""
from typing import Any, Dict, Iterable, List, Set


class AvailabilityCalculator:
    """Subtract booked slots from each service's slot list."""

    @staticmethod
    def booked_slots(service_name: str, bookings: Iterable[Dict[str, Any]]) -> Set[str]:
        """
        Slots taken for one service.

        Args:
            service_name: Service name to match against booking treatment
            bookings: Bookings already filtered to the queried date

        Returns:
            Set of booked slot labels
        """
        return {b.get("slot") for b in bookings if b.get("treatment") == service_name}

    def available_services(
        self,
        services: List[Dict[str, Any]],
        bookings: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Build the per-request availability view.

        Input records are not modified. Slot order is preserved, and a fully
        booked service is returned with an empty slot list.

        Args:
            services: Service records with "name" and "slots"
            bookings: Bookings for the queried date

        Returns:
            Copies of the services with "slots" narrowed to free slots
        """
        available = []
        for service in services:
            taken = self.booked_slots(service["name"], bookings)
            view = dict(service)
            view["slots"] = [slot for slot in service.get("slots", []) if slot not in taken]
            available.append(view)
        return available
