"""Customer-facing reply texts for the chat channel."""

from datetime import date
from zoneinfo import ZoneInfo

from salon_booking.schemas.booking_schema import FoundBooking
from salon_booking.tools.services import get_all_services
from salon_booking.utils import format_date

ASK_NAME = "Hello! What is your name?"
ASK_NAME_AGAIN = "Please tell me your name so we can get started."
ASK_TAX_ID = "Please send your tax ID (CPF), digits only:"
INVALID_TAX_ID = "Invalid tax ID! Please type exactly the 11 digits."
INVALID_SERVICE = "Invalid option! Type 1, 2 or 3 to choose a service."
ASK_DATE = "Which date would you like? (DD/MM/YYYY)"
INVALID_DATE = "Invalid date! Please use the DD/MM/YYYY format."
PAST_DATE = "That date has already passed. Please send another date (DD/MM/YYYY)."
NO_SLOTS = "There are no available times on this date. Please send another date (DD/MM/YYYY)."
INVALID_TIME = "Invalid time! Please use the HH:MM format."
TIME_NOT_AVAILABLE = "That time is not available. Please choose one of the listed times."
BOOKING_FAILED = "Sorry, something went wrong while booking your appointment. Please try again later."
SLOT_TAKEN = "Sorry, that time was just taken. Send a message whenever you want to choose another one."
BOOKING_ABORTED = "Booking cancelled. Send a message whenever you want to start again."
NO_BOOKINGS = "No bookings were found for this tax ID."
INVALID_BOOKING_CHOICE = "Invalid number. Please try again."
CANCELLATION_DONE = "Your booking was cancelled successfully!"
CANCELLATION_FAILED = "Sorry, we could not cancel your booking. Please try again later."
CANCELLATION_ABORTED = "Cancellation aborted. Your booking is kept."


def main_menu(name: str) -> str:
    return (
        f"Hi, *{name}*! How can I help you?\n"
        "1. Book an appointment\n"
        "2. Cancel an appointment"
    )


def invalid_menu_choice(name: str) -> str:
    return "Please type 1 or 2.\n" + main_menu(name)


def service_menu() -> str:
    lines = ["Choose the service:"]
    lines.extend(f"{choice}. {label}" for choice, label in get_all_services())
    lines.append("\nType the number of the service:")
    return "\n".join(lines)


def available_times(day: date, slots: list[str]) -> str:
    return (
        f"Available times on {format_date(day)}:\n"
        + "\n".join(slots)
        + "\n\nChoose a time (HH:MM):"
    )


def booking_summary(name: str, service: str, day: date, slot_time: str) -> str:
    return (
        "Please confirm your booking:\n"
        f"Customer: {name}\n"
        f"Service: {service}\n"
        f"Date: {format_date(day)}\n"
        f"Time: {slot_time}\n\n"
        "Type *YES* to confirm or *NO* to cancel."
    )


def booking_confirmed(name: str, service: str, day: date, slot_time: str) -> str:
    return (
        "Booking confirmed!\n"
        f"Customer: {name}\n"
        f"Service: {service}\n"
        f"Date: {format_date(day)}\n"
        f"Time: {slot_time}"
    )


def _booking_line(booking: FoundBooking, tz: ZoneInfo) -> str:
    return f"{booking.start.astimezone(tz):%d/%m/%Y %H:%M} - {booking.service}"


def bookings_list(bookings: list[FoundBooking], tz: ZoneInfo) -> str:
    lines = ["Your bookings:"]
    lines.extend(f"{i}. {_booking_line(b, tz)}" for i, b in enumerate(bookings, start=1))
    lines.append("\nType the number of the booking you want to cancel.")
    return "\n".join(lines)


def cancellation_summary(booking: FoundBooking, tz: ZoneInfo) -> str:
    return (
        "Are you sure you want to cancel this booking?\n"
        f"{_booking_line(booking, tz)}\n"
        "Type *YES* to confirm or *NO* to keep it."
    )
