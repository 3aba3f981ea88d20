"""HTTP tests for the admin, organizer, webhook and local test routes."""

from __future__ import annotations

import asyncio
import unittest
from datetime import date
from unittest.mock import patch

from fastapi import BackgroundTasks
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_event_admin_service
from app.api.v1.routes import webhook
from app.core.security import Principal, create_access_token
from app.core.settings import settings
from app.db.base import Base
from app.interfaces.messaging_provider import InboundMessage
from app.main import app
from app.models import Reservation, Student
from app.schemas.telegram import TelegramUpdate
from app.services.conversation_tracker import Outcome
from app.services.event_admin_service import EventAdminService


class AdminApiTestCase(unittest.TestCase):
    """Exercises login, role checks and the event/attendance endpoints."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.db = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)()
        self.service = EventAdminService(self.db)
        self.service.ensure_default_admin("root", "root-pass")
        app.dependency_overrides[get_event_admin_service] = lambda: self.service
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.db.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _login(self, path: str, username: str, password: str) -> dict[str, str]:
        response = self.client.post(f"/api/v1/{path}", json={"username": username, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return {"Authorization": f"Bearer {response.json()['accessToken']}"}

    def _admin_headers(self) -> dict[str, str]:
        return self._login("admin/login", "root", "root-pass")

    def _organizer_headers(self) -> dict[str, str]:
        self.client.post(
            "/api/v1/admin/create-organizer",
            json={"username": "door1", "password": "scan-pass"},
            headers=self._admin_headers(),
        )
        return self._login("organizer/login", "door1", "scan-pass")

    def _reserved_student(self, *, attended: bool = False) -> int:
        event = self.service.get_active_event()
        student = Student(
            telegram_id=501,
            full_name="Jane Doe",
            phone_number="+251911000000",
            year_of_study="2nd Year",
            department="CS",
        )
        self.db.add(student)
        self.db.commit()
        self.db.add(
            Reservation(
                student_id=student.id,
                event_id=event.id,
                attendance_status="Yes",
                feedback="Good",
                attended=attended,
            )
        )
        self.db.commit()
        return student.id

    def test_health_check(self) -> None:
        response = self.client.get("/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_login_with_bad_credentials(self) -> None:
        response = self.client.post("/api/v1/admin/login", json={"username": "root", "password": "nope"})

        self.assertEqual(response.status_code, 401)

    def test_admin_routes_require_token(self) -> None:
        self.assertEqual(self.client.get("/api/v1/admin/reservations").status_code, 401)
        response = self.client.get(
            "/api/v1/admin/reservations",
            headers={"Authorization": "Bearer not-a-token"},
        )
        self.assertEqual(response.status_code, 403)

    def test_expired_token_is_forbidden(self) -> None:
        token = create_access_token(Principal(id=1, username="root", is_admin=True), expires_minutes=-1)

        response = self.client.get("/api/v1/admin/dashboard-stats", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 403)

    def test_create_event_and_list_reservations(self) -> None:
        headers = self._admin_headers()

        response = self.client.post(
            "/api/v1/admin/events",
            json={"eventName": "Hack Night", "eventDate": "2026-11-01"},
            headers=headers,
        )

        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["event"]["event_name"], "Hack Night")
        self.assertTrue(response.json()["event"]["is_active"])

        self._reserved_student()
        rows = self.client.get("/api/v1/admin/reservations", headers=headers).json()
        self.assertEqual([row["full_name"] for row in rows], ["Jane Doe"])
        self.assertEqual(rows[0]["event_date"], "2026-11-01")

    def test_organizer_cannot_use_admin_only_routes(self) -> None:
        headers = self._organizer_headers()

        self.assertEqual(self.client.get("/api/v1/admin/dashboard-stats", headers=headers).status_code, 403)
        response = self.client.post(
            "/api/v1/admin/create-organizer",
            json={"username": "door2", "password": "x"},
            headers=headers,
        )
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get("/api/v1/admin/reservations", headers=headers).status_code, 200)

    def test_oversized_admin_input_is_rejected_before_the_database(self) -> None:
        headers = self._admin_headers()

        event = self.client.post(
            "/api/v1/admin/events",
            json={"eventName": "x" * 201, "eventDate": "2026-11-01"},
            headers=headers,
        )
        organizer = self.client.post(
            "/api/v1/admin/create-organizer",
            json={"username": "d" * 65, "password": "scan-pass"},
            headers=headers,
        )

        self.assertEqual(event.status_code, 422)
        self.assertEqual(organizer.status_code, 422)
        self.assertIsNone(self.service.get_active_event())

    def test_duplicate_organizer_conflicts(self) -> None:
        headers = self._admin_headers()
        payload = {"username": "door1", "password": "scan-pass"}

        self.assertEqual(self.client.post("/api/v1/admin/create-organizer", json=payload, headers=headers).status_code, 201)
        self.assertEqual(self.client.post("/api/v1/admin/create-organizer", json=payload, headers=headers).status_code, 409)

    def test_mark_attendance_flow(self) -> None:
        headers = self._organizer_headers()

        response = self.client.post("/api/v1/organizer/mark-attendance", json={"studentId": 1}, headers=headers)
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()["success"])

        self.service.create_event("Hack Night", date(2026, 11, 1))
        student_id = self._reserved_student()

        response = self.client.post("/api/v1/organizer/mark-attendance", json={"studentId": student_id}, headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True, "message": "Attendance marked for Jane Doe."})

        response = self.client.post("/api/v1/organizer/mark-attendance", json={"studentId": student_id}, headers=headers)
        self.assertEqual(response.status_code, 409)

    def test_random_winners(self) -> None:
        headers = self._organizer_headers()
        self.service.create_event("Hack Night", date(2026, 11, 1))

        self.assertEqual(self.client.get("/api/v1/organizer/random-winners", headers=headers).status_code, 404)

        student_id = self._reserved_student(attended=True)
        response = self.client.get("/api/v1/organizer/random-winners", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([winner["id"] for winner in response.json()["winners"]], [student_id])

    def test_dashboard_stats_use_camel_case(self) -> None:
        headers = self._admin_headers()
        self.service.create_event("Hack Night", date(2026, 11, 1))
        self._reserved_student()

        body = self.client.get("/api/v1/admin/dashboard-stats", headers=headers).json()

        self.assertEqual(body["totalRegisteredUsers"], 1)
        self.assertEqual(body["upcomingEventReservations"], 1)
        self.assertEqual(body["allUsers"], [{"full_name": "Jane Doe", "department": "CS", "telegram_id": 501}])

    def test_event_attendees_listing(self) -> None:
        headers = self._admin_headers()
        event = self.service.create_event("Hack Night", date(2026, 11, 1))
        student_id = self._reserved_student(attended=True)

        rows = self.client.get(f"/api/v1/admin/events/{event.id}/attendees", headers=headers).json()

        self.assertEqual([row["id"] for row in rows], [student_id])


class WebhookApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)

    def test_update_without_message_is_ignored(self) -> None:
        response = self.client.post("/api/v1/telegram/webhook", json={"update_id": 1})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ignored"})

    def test_wrong_secret_is_forbidden(self) -> None:
        with patch.object(settings, "telegram_webhook_secret", "expected-secret"):
            response = self.client.post(
                "/api/v1/telegram/webhook",
                json={"update_id": 1},
                headers={"X-Telegram-Bot-Api-Secret-Token": "wrong"},
            )

        self.assertEqual(response.status_code, 403)

    def test_message_update_is_accepted_and_processed(self) -> None:
        bot_service = StubBotService()
        with patch.object(webhook, "bot_service", bot_service):
            response = self.client.post("/api/v1/telegram/webhook", json=_text_update("/start"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "accepted"})
        self.assertEqual([message.text for message in bot_service.messages], ["/start"])


class StubBotService:
    """Records updates; optionally blocks until released or raises."""

    def __init__(self, *, gate: asyncio.Event | None = None, error: Exception | None = None) -> None:
        self.gate = gate
        self.error = error
        self.messages: list[InboundMessage] = []

    async def handle_update(self, message: InboundMessage) -> Outcome:
        self.messages.append(message)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return Outcome.COMPLETED


def _text_update(text: str) -> dict:
    return {
        "update_id": 10,
        "message": {"message_id": 1, "chat": {"id": 9000}, "from": {"id": 9000}, "text": text},
    }


class WebhookProcessingTestCase(unittest.IsolatedAsyncioTestCase):
    async def test_route_returns_before_update_is_processed(self) -> None:
        gate = asyncio.Event()
        bot_service = StubBotService(gate=gate)
        background_tasks = BackgroundTasks()

        with patch.object(webhook, "bot_service", bot_service):
            body = await webhook.receive_update(
                TelegramUpdate.model_validate(_text_update("YES, SEND IT")),
                background_tasks,
                secret_token=None,
            )
            self.assertEqual(body, {"status": "accepted"})
            self.assertEqual(bot_service.messages, [])
            self.assertEqual(len(background_tasks.tasks), 1)

            gate.set()
            await background_tasks()

        self.assertEqual([message.text for message in bot_service.messages], ["YES, SEND IT"])

    async def test_failed_update_is_logged(self) -> None:
        bot_service = StubBotService(error=RuntimeError("store down"))
        message = InboundMessage(chat_id=9000, user_id=9000, text="/start")

        with patch.object(webhook, "bot_service", bot_service):
            with self.assertLogs("app.api.v1.routes.webhook", level="ERROR") as logs:
                await webhook.process_update(10, message)

        self.assertIn("Update 10 for chat 9000 failed", logs.output[0])


class TestMessageRouteTestCase(unittest.TestCase):
    """Walks a full registration through the mock-provider route."""

    def setUp(self) -> None:
        self.client = TestClient(app)

    def _send(self, message: str, **extra: object) -> dict:
        response = self.client.post("/api/v1/test-message", json={"chat_id": 424242, "message": message, **extra})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def test_registration_walkthrough(self) -> None:
        started = self._send("/start", username="jane")
        self.assertEqual(started["outcome"], "started")
        self.assertIn("Please enter your Full Name:", started["responses"][0])

        self.assertEqual(self._send("Jane Doe")["outcome"], "advanced")
        self.assertEqual(self._send("", contact_phone="+251911000000")["outcome"], "advanced")
        self.assertEqual(self._send("5th Year")["outcome"], "rejected")
        self.assertEqual(self._send("1st Year")["outcome"], "advanced")

        done = self._send("CS")
        self.assertEqual(done["outcome"], "completed")
        self.assertEqual(done["responses"][0], "Registering...")
        self.assertTrue(done["responses"][1].startswith("[image] You are registered!"))

        again = self._send("/start")
        self.assertEqual(again["outcome"], "resent")

    def test_unknown_command(self) -> None:
        body = self._send("/help")

        self.assertEqual(body["outcome"], "ignored")
        self.assertIn("/start, /event, /broadcast, or /cancel", body["responses"][0])


if __name__ == "__main__":
    unittest.main()
