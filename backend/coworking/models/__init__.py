from coworking.models.office import Office
from coworking.models.reservation import Reservation

__all__ = ["Office", "Reservation"]
