from datetime import timedelta

from conftest import INTERNAL_SECRET, create_event, create_user, get_event
from repositories.admin import AdminRepository
from utils.dates import utc_now


def event_payload(**overrides):
    payload = {
        "title": "Limpeza da praia",
        "description": "Recolha de lixo no areal",
        "category": "ambiente",
        "address": "Praia de Matosinhos",
        "date": (utc_now() + timedelta(days=3)).isoformat(),
        "duration": "2h30",
        "volunteers_needed": 15,
    }
    payload.update(overrides)
    return payload


async def test_login_creates_user_and_session(client):
    response = await client.post("/auth/login", json={
        "auth_id": "google-123", "name": "Rita", "email": "rita@example.com", "role": "volunteer"
    })

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["role"] == "volunteer"

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {body['session_token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Rita"


async def test_login_cannot_self_assign_admin_role(client):
    response = await client.post("/auth/login", json={"auth_id": "anyone", "name": "X", "role": "admin"})

    assert response.status_code == 422
    assert (await AdminRepository.get_platform_metrics())["total_users"] == 0


async def test_later_login_keeps_stored_role(client, admin):
    user = (await client.get("/auth/me", headers=admin.headers)).json()

    response = await client.post("/auth/login", json={
        "auth_id": user["auth_id"], "name": "Admin", "role": "volunteer"
    })

    assert response.json()["user"]["role"] == "admin"
    token = response.json()["session_token"]
    metrics = await client.get("/admin/metrics", headers={"Authorization": f"Bearer {token}"})
    assert metrics.status_code == 200


async def test_invalid_token_is_rejected(client):
    response = await client.get("/auth/me", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401


async def test_logout_invalidates_token(client, volunteer):
    assert (await client.post("/auth/logout", headers=volunteer.headers)).status_code == 200

    assert (await client.get("/auth/me", headers=volunteer.headers)).status_code == 401


async def test_only_organizations_create_events(client, organization, volunteer):
    denied = await client.post("/events/create", json=event_payload(), headers=volunteer.headers)
    assert denied.status_code == 403

    created = await client.post("/events/create", json=event_payload(), headers=organization.headers)
    assert created.status_code == 200
    assert created.json()["status"] == "open"
    assert created.json()["organization_id"] == organization.id


async def test_event_listing_plain_and_paged(client, organization):
    for day in range(1, 4):
        await create_event(organization.id, title=f"Evento {day}", date=utc_now() + timedelta(days=day))

    plain = await client.get("/events")
    assert plain.status_code == 200
    assert plain.json()["kind"] == "plain"
    assert [e["title"] for e in plain.json()["events"]] == ["Evento 1", "Evento 2", "Evento 3"]
    assert plain.json()["events"][0]["organization"]["name"] == "Associação Mar Limpo"

    paged = await client.get("/events", params={"paginate": True, "page": 2, "page_size": 2})
    body = paged.json()
    assert body["kind"] == "paged"
    assert body["total_count"] == 3
    assert body["total_pages"] == 2
    assert [e["title"] for e in body["events"]] == ["Evento 3"]


async def test_event_listing_filters(client, organization):
    await create_event(organization.id, title="Aulas de inglês", category="educacao")
    await create_event(organization.id, title="Limpeza da ribeira", category="ambiente")

    by_category = await client.get("/events", params={"category": "educacao"})
    assert [e["title"] for e in by_category.json()["events"]] == ["Aulas de inglês"]

    by_search = await client.get("/events", params={"search": "ribeira"})
    assert [e["title"] for e in by_search.json()["events"]] == ["Limpeza da ribeira"]


async def test_fetching_events_sweeps_elapsed_ones(client, organization):
    event = await create_event(organization.id, date=utc_now() - timedelta(days=1))

    response = await client.get(f"/events/{event.id}")

    assert response.status_code == 200
    assert response.json()["status"] == "completed"


async def test_event_status_moves_forward_only(client, organization):
    event = await create_event(organization.id)

    closed = await client.patch(f"/events/{event.id}/update", json={"status": "closed"}, headers=organization.headers)
    assert closed.status_code == 200
    assert closed.json()["status"] == "closed"

    reopened = await client.patch(f"/events/{event.id}/update", json={"status": "open"}, headers=organization.headers)
    assert reopened.status_code == 400


async def test_event_update_rejects_null_for_required_fields(client, organization):
    event = await create_event(organization.id, image_url="https://cdn/capa.jpg")

    cleared_title = await client.patch(f"/events/{event.id}/update", json={"title": None}, headers=organization.headers)
    assert cleared_title.status_code == 422
    assert (await get_event(event.id)).title == event.title

    cleared_image = await client.patch(
        f"/events/{event.id}/update", json={"image_url": None}, headers=organization.headers
    )
    assert cleared_image.status_code == 200
    assert cleared_image.json()["image_url"] is None


async def test_only_owner_updates_or_deletes_event(client, organization):
    intruder = await create_user("organization")
    event = await create_event(organization.id)

    update = await client.patch(f"/events/{event.id}/update", json={"title": "X"}, headers=intruder.headers)
    delete = await client.delete(f"/events/{event.id}/delete", headers=intruder.headers)

    assert update.status_code == 403
    assert delete.status_code == 403
    assert (await client.delete(f"/events/{event.id}/delete", headers=organization.headers)).status_code == 200
    assert await get_event(event.id) is None


async def test_recap_only_for_completed_events(client, organization):
    event = await create_event(organization.id)
    recap = {"post_event_summary": "Recolhemos 200 kg de lixo", "post_event_gallery_urls": ["https://cdn/1.jpg"]}

    early = await client.put(f"/events/{event.id}/recap", json=recap, headers=organization.headers)
    assert early.status_code == 400

    done = await create_event(organization.id, status="completed", date=utc_now() - timedelta(days=1))
    published = await client.put(f"/events/{done.id}/recap", json=recap, headers=organization.headers)
    assert published.status_code == 200
    assert published.json()["post_event_gallery_urls"] == ["https://cdn/1.jpg"]


async def test_application_flow_over_http(client, email_client, organization, volunteer):
    event = await create_event(organization.id)

    created = await client.post(
        "/applications/create", json={"event_id": event.id, "message": "Posso ajudar"}, headers=volunteer.headers
    )
    assert created.status_code == 200
    assert created.json()["application"]["status"] == "pending"
    assert created.json()["notification_status"] == "sent"
    application_id = created.json()["application"]["id"]

    duplicate = await client.post("/applications/create", json={"event_id": event.id}, headers=volunteer.headers)
    assert duplicate.status_code == 409

    received = await client.get(f"/applications/event/{event.id}", headers=organization.headers)
    assert [a["volunteer_name"] for a in received.json()] == ["Ana Costa"]

    approved = await client.post(f"/applications/{application_id}/approve", headers=organization.headers)
    assert approved.status_code == 200
    assert approved.json()["application"]["status"] == "approved"

    again = await client.post(f"/applications/{application_id}/approve", headers=organization.headers)
    assert again.status_code == 400

    forbidden = await client.post(f"/applications/{application_id}/cancel", headers=organization.headers)
    assert forbidden.status_code == 403

    mine = await client.get("/applications/my-applications", headers=volunteer.headers)
    assert mine.json()["total_count"] == 1
    assert mine.json()["applications"][0]["event_title"] == event.title


async def test_organizations_cannot_apply(client, organization):
    event = await create_event(organization.id)

    response = await client.post("/applications/create", json={"event_id": event.id}, headers=organization.headers)

    assert response.status_code == 403


async def test_manage_application_function_wire_shape(client, organization, volunteer):
    event = await create_event(organization.id)
    created = await client.post("/applications/create", json={"event_id": event.id}, headers=volunteer.headers)
    application_id = created.json()["application"]["id"]

    response = await client.post(
        "/functions/manage-application",
        json={"action": "approve", "applicationId": application_id, "actorId": organization.id},
        headers=organization.headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["application"]["status"] == "approved"
    assert body["data"]["notificationStatus"] == "sent"
    assert body["data"]["notificationError"] is None


async def test_manage_application_function_errors(client, organization, volunteer):
    event = await create_event(organization.id)
    created = await client.post("/applications/create", json={"event_id": event.id}, headers=volunteer.headers)
    application_id = created.json()["application"]["id"]

    missing = await client.post(
        "/functions/manage-application", json={"action": "approve"}, headers=organization.headers
    )
    assert missing.status_code == 400
    assert missing.json()["success"] is False

    unsupported = await client.post(
        "/functions/manage-application",
        json={"action": "archive", "applicationId": application_id, "actorId": organization.id},
        headers=organization.headers,
    )
    assert unsupported.status_code == 400

    impersonation = await client.post(
        "/functions/manage-application",
        json={"action": "cancel", "applicationId": application_id, "actorId": volunteer.id},
        headers=organization.headers,
    )
    assert impersonation.status_code == 403
    assert impersonation.json() == {"success": False, "error": "Não tem permissão para gerir esta candidatura."}

    wrong_state = await client.post(
        "/functions/manage-application",
        json={"action": "reapply", "applicationId": application_id, "actorId": volunteer.id, "message": "Outra vez"},
        headers=volunteer.headers,
    )
    assert wrong_state.status_code == 400
    assert wrong_state.json()["error"] == "A candidatura não está cancelada."


async def test_process_expired_events_requires_internal_secret(client, organization):
    event = await create_event(organization.id, date=utc_now() - timedelta(days=1))

    denied = await client.post("/functions/process-expired-events", json={})
    assert denied.status_code == 403

    dry = await client.post(
        "/functions/process-expired-events", json={"dryRun": True}, headers={"X-Internal-Secret": INTERNAL_SECRET}
    )
    assert dry.json()["completedEventIds"] == [event.id]
    assert (await get_event(event.id)).status == "open"

    response = await client.post(
        "/functions/process-expired-events", json={}, headers={"X-Internal-Secret": INTERNAL_SECRET}
    )
    body = response.json()
    assert body["success"] is True
    assert body["completedEventIds"] == [event.id]
    assert body["completedCount"] == 1
    assert body["skippedEventIds"] == []
    assert "processedAt" in body


async def test_send_event_reminders_function(client, organization):
    response = await client.post(
        "/functions/send-event-reminders", json={"dryRun": True}, headers={"X-Internal-Secret": INTERNAL_SECRET}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["processed"] == 0
    assert "windowStart" in body and "windowEnd" in body


async def test_volunteer_statistics_endpoint(client, organization, volunteer):
    event = await create_event(organization.id, date=utc_now() + timedelta(days=1), duration="2h30")
    created = await client.post("/applications/create", json={"event_id": event.id}, headers=volunteer.headers)
    await client.post(f"/applications/{created.json()['application']['id']}/approve", headers=organization.headers)

    response = await client.get("/user/statistics", headers=volunteer.headers)

    assert response.status_code == 200
    assert response.json() == {
        "events_attended": 0,
        "events_completed": 0,
        "total_volunteer_hours": 0.0,
        "participation_rate": 0.0,
        "total_applications": 1,
    }


async def test_organization_dashboard_endpoint(client, organization, volunteer):
    event = await create_event(organization.id)
    await client.post("/applications/create", json={"event_id": event.id}, headers=volunteer.headers)

    response = await client.get("/organizations/dashboard", headers=organization.headers)

    body = response.json()
    assert response.status_code == 200
    assert body["statistics"]["total_events"] == 1
    assert body["statistics"]["applications"]["pending"] == 1
    assert body["upcoming_events"][0]["id"] == event.id
    assert body["pending_applications"][0]["volunteer_name"] == "Ana Costa"


async def test_notifications_endpoints(client, organization, volunteer):
    event = await create_event(organization.id)
    await client.post("/applications/create", json={"event_id": event.id}, headers=volunteer.headers)

    listing = await client.get("/notifications", headers=organization.headers)
    assert listing.json()["unread_count"] == 1
    notification_id = listing.json()["notifications"][0]["id"]

    foreign = await client.post(f"/notifications/{notification_id}/read", headers=volunteer.headers)
    assert foreign.status_code == 404

    read = await client.post(f"/notifications/{notification_id}/read", headers=organization.headers)
    assert read.status_code == 200
    assert (await client.get("/notifications", headers=organization.headers)).json()["unread_count"] == 0


async def test_admin_metrics(client, admin, organization, volunteer):
    await create_event(organization.id)

    denied = await client.get("/admin/metrics", headers=volunteer.headers)
    assert denied.status_code == 403

    response = await client.get("/admin/metrics", headers=admin.headers)
    body = response.json()
    assert body["total_users"] == 3
    assert body["total_organizations"] == 1
    assert body["total_events"] == 1
    assert len(body["latest_users"]) == 3


async def test_profile_update_and_public_view(client, organization):
    updated = await client.patch(
        "/user/profile/update",
        json={"mission": "Praias limpas", "gallery_urls": ["https://cdn/a.jpg"], "name": "Mar Limpo"},
        headers=organization.headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Mar Limpo"
    assert updated.json()["profile"]["mission"] == "Praias limpas"

    public = await client.get(f"/user/{organization.id}/public")
    assert public.status_code == 200
    assert public.json()["gallery_urls"] == ["https://cdn/a.jpg"]
    assert "email" not in public.json()
