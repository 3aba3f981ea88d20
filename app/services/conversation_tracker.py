"""Per-chat registration, reservation and broadcast flows."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from app.core.exceptions import (
    CodeGenerationError,
    CollaboratorError,
    DeliveryError,
    DuplicateConflictError,
    MediaError,
)
from app.interfaces.code_generator import CodeGenerator
from app.interfaces.image_library import ImageLibrary
from app.interfaces.messaging_provider import InboundMessage, MessagingProvider, ReplyOptions
from app.interfaces.registration_store import RegistrationFields, RegistrationStore
from app.services.conversation_manager import (
    BroadcastStep,
    ConversationManager,
    ConversationState,
    FlowKind,
    RegistrationStep,
    ReservationStep,
    Step,
)

logger = logging.getLogger(__name__)

YEAR_OPTIONS = ("1st Year", "2nd Year", "3rd Year", "4th Year")
DEPARTMENT_OPTIONS = ("CS", "BA")
ATTENDANCE_OPTIONS = ("Yes", "No", "Maybe")
FEEDBACK_OPTIONS = ("Good", "Bad", "Nice")
CONFIRM_TOKEN = "YES, SEND IT"
CANCEL_TOKEN = "NO, CANCEL"

GENERIC_FAILURE = "Sorry, something went wrong. Please try again later."

BroadcastAuthorizer = Callable[[int], bool]
Sleeper = Callable[[float], Awaitable[None]]


class Outcome(str, Enum):
    """Observable result of one tracker operation."""

    STARTED = "started"
    ADVANCED = "advanced"
    REJECTED = "rejected"
    DENIED = "denied"
    RESENT = "resent"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True, slots=True)
class Transition:
    """Input accepted at a step, where it is stored and where the flow goes next."""

    field: str
    next_step: Step
    reprompt: str
    options: tuple[str, ...] = ()
    accepts_contact: bool = False
    requires_image: bool = False


@dataclass(frozen=True, slots=True)
class Prompt:
    text: str
    options: ReplyOptions | None = None


@dataclass(slots=True)
class BroadcastReport:
    sent: int = 0
    failed: int = 0


TRANSITIONS: dict[Step, Transition] = {
    RegistrationStep.COLLECT_NAME: Transition(
        field="full_name",
        next_step=RegistrationStep.COLLECT_PHONE,
        reprompt="Please enter your Full Name:",
    ),
    RegistrationStep.COLLECT_PHONE: Transition(
        field="phone_number",
        next_step=RegistrationStep.COLLECT_YEAR_OF_STUDY,
        reprompt="Invalid input. Please share your phone number.",
        accepts_contact=True,
    ),
    RegistrationStep.COLLECT_YEAR_OF_STUDY: Transition(
        field="year_of_study",
        next_step=RegistrationStep.COLLECT_DEPARTMENT,
        reprompt="Please select a valid year.",
        options=YEAR_OPTIONS,
    ),
    RegistrationStep.COLLECT_DEPARTMENT: Transition(
        field="department",
        next_step=RegistrationStep.COMPLETE,
        reprompt="Please select a valid department.",
        options=DEPARTMENT_OPTIONS,
    ),
    ReservationStep.COLLECT_ATTENDANCE_INTENT: Transition(
        field="attendance_status",
        next_step=ReservationStep.COLLECT_FEEDBACK,
        reprompt="Please select an option from the buttons.",
        options=ATTENDANCE_OPTIONS,
    ),
    ReservationStep.COLLECT_FEEDBACK: Transition(
        field="feedback",
        next_step=ReservationStep.COMPLETE,
        reprompt="Please select an option.",
        options=FEEDBACK_OPTIONS,
    ),
    BroadcastStep.COLLECT_IMAGE_REFERENCE: Transition(
        field="image_name",
        next_step=BroadcastStep.COLLECT_CAPTION,
        reprompt="❌ File not found. Please check the `images` directory and enter a valid file name.",
        requires_image=True,
    ),
    BroadcastStep.COLLECT_CAPTION: Transition(
        field="caption",
        next_step=BroadcastStep.AWAIT_CONFIRMATION,
        reprompt="Please enter the caption for the message.",
    ),
}

PROMPTS: dict[Step, Prompt] = {
    RegistrationStep.COLLECT_NAME: Prompt("Welcome! Let's get you registered.\n\nPlease enter your Full Name:"),
    RegistrationStep.COLLECT_PHONE: Prompt(
        "Got it. Now, please share your Phone Number:",
        ReplyOptions(keyboard=(("Share My Phone Number",),), request_contact=True),
    ),
    RegistrationStep.COLLECT_YEAR_OF_STUDY: Prompt(
        "Thank you! Please select your Year of Study:",
        ReplyOptions.buttons(YEAR_OPTIONS[:2], YEAR_OPTIONS[2:]),
    ),
    RegistrationStep.COLLECT_DEPARTMENT: Prompt(
        "Almost done! Select your Department:",
        ReplyOptions.buttons(DEPARTMENT_OPTIONS),
    ),
    ReservationStep.COLLECT_ATTENDANCE_INTENT: Prompt(
        "Will you attend?",
        ReplyOptions.buttons(ATTENDANCE_OPTIONS),
    ),
    ReservationStep.COLLECT_FEEDBACK: Prompt(
        "Thank you! How was your experience at the last event?",
        ReplyOptions.buttons(FEEDBACK_OPTIONS),
    ),
    BroadcastStep.COLLECT_IMAGE_REFERENCE: Prompt(
        "📢 *Broadcast Mode*\n\nPlease enter the exact name of the image file from the `images` "
        "directory (e.g., `announcement.jpg`).",
        ReplyOptions(parse_mode="Markdown"),
    ),
    BroadcastStep.COLLECT_CAPTION: Prompt("✅ Image found.\n\nNow, please enter the caption for the message."),
    BroadcastStep.AWAIT_CONFIRMATION: Prompt(
        "Are you sure you want to broadcast this message to all registered users?",
        ReplyOptions.buttons((CONFIRM_TOKEN,), (CANCEL_TOKEN,)),
    ),
}

REMOVE_KEYBOARD = ReplyOptions(remove_keyboard=True)


class ConversationTracker:
    """Drives one finite-state conversation per chat to completion or cancellation."""

    def __init__(
        self,
        conversation_manager: ConversationManager,
        store: RegistrationStore,
        messaging_provider: MessagingProvider,
        code_generator: CodeGenerator,
        image_library: ImageLibrary,
        is_authorized_broadcaster: BroadcastAuthorizer,
        *,
        send_delay_seconds: float = 0.1,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.conversation_manager = conversation_manager
        self.store = store
        self.messaging_provider = messaging_provider
        self.code_generator = code_generator
        self.image_library = image_library
        self.is_authorized_broadcaster = is_authorized_broadcaster
        self.send_delay_seconds = send_delay_seconds
        self._sleep = sleep

    # Command entry points

    async def start_registration(self, message: InboundMessage) -> Outcome:
        async with self.conversation_manager.lock(message.chat_id):
            try:
                student = await self.store.find_existing_registration(message.user_id)
            except CollaboratorError:
                logger.exception("Registration lookup failed for user %s", message.user_id)
                await self._send(message.chat_id, GENERIC_FAILURE)
                return Outcome.FAILED

            if student is not None:
                await self._send_code(
                    message.chat_id,
                    payload=str(student.id),
                    caption="You are already registered! ✅\n\nHere is your QR code again.",
                    fallback=f"You are already registered! ✅\n\nYour Unique ID is: {student.id}",
                )
                return Outcome.RESENT

            self.conversation_manager.start(
                message.chat_id,
                FlowKind.REGISTRATION,
                RegistrationStep.COLLECT_NAME,
                {"telegram_id": message.user_id, "username": message.username},
            )
            logger.info("Registration started for chat %s", message.chat_id)
            await self._prompt(message.chat_id, RegistrationStep.COLLECT_NAME)
            return Outcome.STARTED

    async def start_reservation(self, message: InboundMessage) -> Outcome:
        async with self.conversation_manager.lock(message.chat_id):
            try:
                student = await self.store.find_existing_registration(message.user_id)
                if student is None:
                    await self._send(message.chat_id, "Please register with /start before using this command.")
                    return Outcome.REJECTED

                event = await self.store.get_active_event()
                if event is None:
                    await self._send(message.chat_id, "No events are available for reservation right now.")
                    return Outcome.REJECTED

                if await self.store.has_existing_reservation(student.id, event.id):
                    await self._send(message.chat_id, "You have already reserved for the current event.")
                    return Outcome.REJECTED
            except CollaboratorError:
                logger.exception("Reservation checks failed for user %s", message.user_id)
                await self._send(message.chat_id, GENERIC_FAILURE)
                return Outcome.FAILED

            self.conversation_manager.start(
                message.chat_id,
                FlowKind.EVENT_RESERVATION,
                ReservationStep.COLLECT_ATTENDANCE_INTENT,
                {"student_id": student.id, "event_id": event.id},
            )
            logger.info("Reservation started for chat %s on event %s", message.chat_id, event.id)
            prompt = PROMPTS[ReservationStep.COLLECT_ATTENDANCE_INTENT]
            await self._send(
                message.chat_id,
                f"Event: *{event.name}* on *{event.date.isoformat()}*.\n\n{prompt.text}",
                ReplyOptions(keyboard=prompt.options.keyboard, parse_mode="Markdown"),
            )
            return Outcome.STARTED

    async def start_broadcast(self, message: InboundMessage) -> Outcome:
        async with self.conversation_manager.lock(message.chat_id):
            if not self.is_authorized_broadcaster(message.user_id):
                logger.warning("Unauthorized broadcast attempt by user %s", message.user_id)
                await self._send(message.chat_id, "⛔️ You are not authorized to use this command.")
                return Outcome.DENIED

            self.conversation_manager.start(
                message.chat_id,
                FlowKind.BROADCAST,
                BroadcastStep.COLLECT_IMAGE_REFERENCE,
            )
            await self._prompt(message.chat_id, BroadcastStep.COLLECT_IMAGE_REFERENCE)
            return Outcome.STARTED

    async def cancel(self, message: InboundMessage) -> Outcome:
        async with self.conversation_manager.lock(message.chat_id):
            state = self.conversation_manager.discard(message.chat_id)
            if state is None:
                await self._send(message.chat_id, "There is nothing to cancel.", REMOVE_KEYBOARD)
                return Outcome.IGNORED
            logger.info("%s flow cancelled for chat %s", state.flow_kind.value, message.chat_id)
            await self._send(message.chat_id, "Cancelled.", REMOVE_KEYBOARD)
            return Outcome.CANCELLED

    # Flow input

    async def handle_message(self, message: InboundMessage) -> Outcome:
        """Advance the chat's active flow with one non-command message."""
        async with self.conversation_manager.lock(message.chat_id):
            state = self.conversation_manager.get(message.chat_id)
            if state is None:
                return Outcome.IGNORED

            if state.step is BroadcastStep.AWAIT_CONFIRMATION:
                return await self._confirm_broadcast(state, message.text.strip())

            transition = TRANSITIONS[state.step]
            try:
                value = await self._accept(transition, message)
            except MediaError:
                logger.exception("Image lookup failed for chat %s", state.chat_id)
                await self._send(state.chat_id, GENERIC_FAILURE)
                return Outcome.FAILED
            if value is None:
                await self._reprompt(state.chat_id, state.step, transition)
                return Outcome.REJECTED

            state.advance(transition.next_step, transition.field, value, self.conversation_manager.now())
            if state.step is RegistrationStep.COMPLETE:
                return await self._complete_registration(state)
            if state.step is ReservationStep.COMPLETE:
                return await self._complete_reservation(state)
            if state.step is BroadcastStep.AWAIT_CONFIRMATION:
                await self._send_preview(state)
            await self._prompt(state.chat_id, state.step)
            return Outcome.ADVANCED

    async def _accept(self, transition: Transition, message: InboundMessage) -> str | None:
        value = message.contact_phone if transition.accepts_contact and message.contact_phone else message.text
        value = (value or "").strip()
        if not value:
            return None
        if transition.options and value not in transition.options:
            return None
        if transition.requires_image and not await self.image_library.exists(value):
            return None
        return value

    # Terminal steps

    async def _complete_registration(self, state: ConversationState) -> Outcome:
        fields = RegistrationFields(
            telegram_id=state.fields["telegram_id"],
            username=state.fields.get("username"),
            full_name=state.fields["full_name"],
            phone_number=state.fields["phone_number"],
            year_of_study=state.fields["year_of_study"],
            department=state.fields["department"],
        )
        await self._send(state.chat_id, "Registering...", REMOVE_KEYBOARD)
        try:
            student_id = await self.store.persist_registration(fields)
        except CollaboratorError:
            logger.exception("Saving registration failed for chat %s", state.chat_id)
            self.conversation_manager.discard(state.chat_id)
            await self._send(state.chat_id, "An error occurred during registration.")
            return Outcome.FAILED

        self.conversation_manager.discard(state.chat_id)
        logger.info("Student %s registered from chat %s", student_id, state.chat_id)
        await self._send_code(
            state.chat_id,
            payload=str(student_id),
            caption=f"You are registered! ✅\n\nYour Unique ID: {student_id}\nPlease save this QR code.",
            fallback=f"Registered successfully! ✅ Your ID is: {student_id}.",
        )
        return Outcome.COMPLETED

    async def _complete_reservation(self, state: ConversationState) -> Outcome:
        student_id = state.fields["student_id"]
        await self._send(state.chat_id, "Saving your reservation...", REMOVE_KEYBOARD)
        try:
            await self.store.persist_reservation(
                student_id,
                state.fields["event_id"],
                state.fields["attendance_status"],
                state.fields["feedback"],
            )
        except DuplicateConflictError:
            self.conversation_manager.discard(state.chat_id)
            await self._send(state.chat_id, "You have already reserved for the current event.")
            return Outcome.REJECTED
        except CollaboratorError:
            logger.exception("Saving reservation failed for chat %s", state.chat_id)
            self.conversation_manager.discard(state.chat_id)
            await self._send(state.chat_id, "Sorry, we could not save your reservation.")
            return Outcome.FAILED

        self.conversation_manager.discard(state.chat_id)
        logger.info("Reservation saved for student %s on event %s", student_id, state.fields["event_id"])
        await self._send_code(
            state.chat_id,
            payload=str(student_id),
            caption="Reservation confirmed! ✅\n\nThis is your identification. Please come with this QR code.",
            fallback=f"Reservation confirmed! ✅ Your ID is {student_id}.",
        )
        return Outcome.COMPLETED

    async def _confirm_broadcast(self, state: ConversationState, text: str) -> Outcome:
        if text != CONFIRM_TOKEN:
            state.step = BroadcastStep.CANCELLED
            self.conversation_manager.discard(state.chat_id)
            await self._send(state.chat_id, "Broadcast cancelled.", REMOVE_KEYBOARD)
            return Outcome.CANCELLED

        state.step = BroadcastStep.COMPLETE
        await self._send(
            state.chat_id,
            "🚀 Broadcasting message... This may take a while. Please wait.",
            REMOVE_KEYBOARD,
        )
        try:
            image = await self.image_library.read(state.fields["image_name"])
            recipients = await self.store.list_broadcast_recipients()
        except CollaboratorError:
            logger.exception("Broadcast preparation failed for chat %s", state.chat_id)
            self.conversation_manager.discard(state.chat_id)
            await self._send(state.chat_id, GENERIC_FAILURE)
            return Outcome.FAILED

        report = await self.fan_out(recipients, image, state.fields["caption"])
        self.conversation_manager.discard(state.chat_id)
        await self._send(
            state.chat_id,
            f"✅ Broadcast Complete!\n\nSent successfully: {report.sent}\n"
            f"Failed (likely blocked the bot): {report.failed}",
        )
        return Outcome.COMPLETED

    async def fan_out(self, recipients: list[int], image: bytes, caption: str) -> BroadcastReport:
        """Send one image to every recipient in order, pausing between consecutive sends."""
        report = BroadcastReport()
        for index, recipient in enumerate(recipients):
            try:
                await self.messaging_provider.send_image(recipient, image, caption)
            except DeliveryError as exc:
                logger.warning("Failed to send broadcast to user %s: %s", recipient, exc)
                report.failed += 1
            else:
                report.sent += 1
            if index < len(recipients) - 1:
                await self._sleep(self.send_delay_seconds)
        logger.info("Broadcast finished: %d sent, %d failed", report.sent, report.failed)
        return report

    # Messaging helpers

    async def _send_preview(self, state: ConversationState) -> None:
        await self._send(state.chat_id, "Here is a preview of your message:")
        try:
            image = await self.image_library.read(state.fields["image_name"])
            await self.messaging_provider.send_image(state.chat_id, image, state.fields["caption"])
        except (MediaError, DeliveryError):
            logger.exception("Broadcast preview failed for chat %s", state.chat_id)

    async def _prompt(self, chat_id: int, step: Step) -> None:
        prompt = PROMPTS[step]
        await self._send(chat_id, prompt.text, prompt.options)

    async def _reprompt(self, chat_id: int, step: Step, transition: Transition) -> None:
        await self._send(chat_id, transition.reprompt, PROMPTS[step].options)

    async def _send(self, chat_id: int, text: str, options: ReplyOptions | None = None) -> bool:
        try:
            await self.messaging_provider.send_message(chat_id, text, options)
        except DeliveryError:
            logger.exception("Sending message to chat %s failed", chat_id)
            return False
        return True

    async def _send_code(self, chat_id: int, *, payload: str, caption: str, fallback: str) -> None:
        try:
            image = self.code_generator.generate(payload)
            await self.messaging_provider.send_image(chat_id, image, caption)
        except (CodeGenerationError, DeliveryError):
            logger.exception("QR code delivery failed for chat %s", chat_id)
            await self._send(chat_id, fallback)
