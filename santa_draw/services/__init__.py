from santa_draw.services.assignment import generate_assignments
from santa_draw.services.delivery import DeliveryFailure
from santa_draw.services.draw import DrawError, InsufficientParticipants, NoValidAssignment

__all__ = [
    "generate_assignments",
    "DeliveryFailure",
    "DrawError",
    "InsufficientParticipants",
    "NoValidAssignment",
]
