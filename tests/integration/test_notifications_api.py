from httpx import AsyncClient
from fastapi import status
from app.models.shared.enums import NotificationType
from app.services.notification.notification_service import NotificationService


async def _notify(session_maker, hub, user_id, count=1):
    async with session_maker() as session:
        service = NotificationService(session, hub)
        return [
            await service.create_notification(user_id, f"Note {i}", "Body", NotificationType.GENERAL, "/x")
            for i in range(count)
        ]


class TestNotificationsApi:
    """Notification inbox endpoints"""

    async def test_list_with_unread_count(self, client: AsyncClient, seed, session_maker, hub, worker1_headers):
        await _notify(session_maker, hub, seed.worker1.id, 3)
        await _notify(session_maker, hub, seed.worker2.id)

        response = await client.get("/api/v1/notifications/", headers=worker1_headers)
        assert response.status_code == status.HTTP_200_OK

        data = response.json()
        assert data["unread_count"] == 3
        assert [n["title"] for n in data["notifications"]] == ["Note 2", "Note 1", "Note 0"]
        assert all(n["user_id"] == seed.worker1.id for n in data["notifications"])

    async def test_mark_one_read(self, client: AsyncClient, seed, session_maker, hub, worker1_headers):
        notifications = await _notify(session_maker, hub, seed.worker1.id, 2)

        response = await client.post(
            f"/api/v1/notifications/{notifications[0].id}/read", headers=worker1_headers
        )
        assert response.status_code == status.HTTP_200_OK

        count = await client.get("/api/v1/notifications/unread-count", headers=worker1_headers)
        assert count.json() == {"count": 1}

    async def test_cannot_mark_someone_elses_notification(self, client: AsyncClient, seed, session_maker, hub, worker1_headers, worker2_headers):
        notifications = await _notify(session_maker, hub, seed.worker1.id)

        response = await client.post(
            f"/api/v1/notifications/{notifications[0].id}/read", headers=worker2_headers
        )
        assert response.status_code == status.HTTP_200_OK

        count = await client.get("/api/v1/notifications/unread-count", headers=worker1_headers)
        assert count.json() == {"count": 1}

    async def test_mark_all_read(self, client: AsyncClient, seed, session_maker, hub, worker1_headers):
        await _notify(session_maker, hub, seed.worker1.id, 4)

        response = await client.post("/api/v1/notifications/read-all", headers=worker1_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["updated"] == 4

        count = await client.get("/api/v1/notifications/unread-count", headers=worker1_headers)
        assert count.json() == {"count": 0}

    async def test_create_notifies_assigned_worker_inbox(self, client: AsyncClient, seed, admin_headers, worker1_headers):
        response = await client.post(
            "/api/v1/stock-taking/",
            json={"location_id": seed.location.id, "assigned_worker_ids": [seed.worker1.id]},
            headers=admin_headers
        )
        stock_taking_id = response.json()["id"]

        inbox = await client.get("/api/v1/notifications/", headers=worker1_headers)
        notifications = inbox.json()["notifications"]
        assert len(notifications) == 1
        assert notifications[0]["type"] == "STOCK_TAKING_REQUESTED"
        assert notifications[0]["link"] == f"/stock-taking/{stock_taking_id}/perform"

    async def test_stream_requires_authentication(self, client: AsyncClient, seed):
        response = await client.get("/api/v1/notifications/stream")
        assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
