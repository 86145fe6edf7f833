import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from worksite.core.timeutils import local_date, utc_now
from worksite.core.exceptions import InternalError
from worksite.models import AuditAction, AuditLog, CheckIn, UserRole
from worksite.services.audit_service import audit_service
from worksite.services.location_service import location_service

API = "/api/v1"
CENTER = {"latitude": 37.5665, "longitude": 126.9780}


@pytest.fixture
async def crew(seed):
    """An ep company with one zone, one deployed worker and a partner company"""
    company = uuid.uuid4()
    partner = uuid.uuid4()

    ep = await seed.user(UserRole.EP, company_id=company)
    bp = await seed.user(UserRole.BP, company_id=partner)
    admin = await seed.user(UserRole.ADMIN)
    worker_user = await seed.user(UserRole.WORKER)
    worker = await seed.worker(user=worker_user)
    deployment = await seed.deployment(worker, company, partner_company_id=partner)
    zone = await seed.circle_zone(company)

    return {
        "company": company,
        "partner": partner,
        "ep": ep,
        "bp": bp,
        "admin": admin,
        "worker_user": worker_user,
        "worker": worker,
        "deployment": deployment,
        "zone": zone,
    }


async def audit_actions(session):
    result = await session.execute(select(AuditLog.action))
    return list(result.scalars().all())


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# Auth

async def test_login_and_me(client, seed):
    user = await seed.user(UserRole.EP, company_id=uuid.uuid4(), email="ep@example.com")

    response = await client.post(
        f"{API}/auth/login", json={"email": "ep@example.com", "password": "password123"}
    )
    assert response.status_code == 200
    tokens = response.json()
    assert tokens["token_type"] == "bearer"

    me = await client.get(
        f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["id"] == str(user.id)
    assert me.json()["role"] == "ep"

    refreshed = await client.post(
        f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]}
    )
    assert refreshed.status_code == 200
    assert AuditAction.LOGIN in await audit_actions(seed.session)


async def test_login_wrong_password(client, seed):
    await seed.user(UserRole.EP, email="ep@example.com")

    response = await client.post(
        f"{API}/auth/login", json={"email": "ep@example.com", "password": "nope"}
    )
    assert response.status_code == 401
    assert AuditAction.LOGIN_FAILED in await audit_actions(seed.session)


async def test_access_token_cannot_refresh(client, seed, auth_headers):
    user = await seed.user(UserRole.EP)
    token = auth_headers(user)["Authorization"].split()[1]

    response = await client.post(f"{API}/auth/refresh", json={"refresh_token": token})
    assert response.status_code == 401


async def test_requests_without_token_are_rejected(client, db):
    response = await client.get(f"{API}/work-zones")
    assert response.status_code in (401, 403)


# Work zones

async def test_ep_creates_zone_for_own_company(client, crew, auth_headers):
    response = await client.post(
        f"{API}/work-zones",
        json={
            "name": "North gate",
            "zone_type": "circle",
            "center_latitude": 37.57,
            "center_longitude": 126.98,
            "radius_meters": 150,
            "company_id": str(uuid.uuid4()),
        },
        headers=auth_headers(crew["ep"]),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["company_id"] == str(crew["company"])
    assert body["is_active"] is True
    assert body["polygon_coordinates"] is None


async def test_create_polygon_zone(client, crew, auth_headers):
    coordinates = [
        {"lat": 37.5660, "lng": 126.9775},
        {"lat": 37.5670, "lng": 126.9775},
        {"lat": 37.5670, "lng": 126.9785},
        {"lat": 37.5660, "lng": 126.9785},
    ]
    response = await client.post(
        f"{API}/work-zones",
        json={"name": "Block", "zone_type": "polygon", "polygon_coordinates": coordinates},
        headers=auth_headers(crew["ep"]),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["polygon_coordinates"] == coordinates
    assert body["radius_meters"] is None

    check = await client.post(
        f"{API}/work-zones/{body['id']}/check",
        json=CENTER,
        headers=auth_headers(crew["ep"]),
    )
    assert check.json()["inside"] is True
    assert check.json()["distance_meters"] == 0


@pytest.mark.parametrize("payload", [
    {"name": "Tiny", "center_latitude": 37.5, "center_longitude": 127.0, "radius_meters": 5},
    {"name": "Huge", "center_latitude": 37.5, "center_longitude": 127.0, "radius_meters": 20000},
    {"name": "No center", "radius_meters": 100},
    {"name": "Off map", "center_latitude": 95, "center_longitude": 127.0},
    {"name": "Line", "zone_type": "polygon", "polygon_coordinates": [
        {"lat": 37.5, "lng": 127.0}, {"lat": 37.6, "lng": 127.0}
    ]},
    {"name": "Closed line", "zone_type": "polygon", "polygon_coordinates": [
        {"lat": 37.5, "lng": 127.0}, {"lat": 37.6, "lng": 127.0}, {"lat": 37.5, "lng": 127.0}
    ]},
])
async def test_invalid_zones_are_rejected(client, crew, auth_headers, payload):
    response = await client.post(
        f"{API}/work-zones", json=payload, headers=auth_headers(crew["ep"])
    )
    assert response.status_code == 422
    assert response.json()["detail"]


@pytest.mark.parametrize("payload,message", [
    ({"name": "No center", "radius_meters": 100}, "requires center_latitude"),
    ({"name": "Line", "zone_type": "polygon", "polygon_coordinates": [
        {"lat": 37.5, "lng": 127.0}, {"lat": 37.6, "lng": 127.0}
    ]}, "at least 3 coordinates"),
])
async def test_zone_shape_errors_are_readable(client, crew, auth_headers, payload, message):
    response = await client.post(
        f"{API}/work-zones", json=payload, headers=auth_headers(crew["ep"])
    )

    assert response.status_code == 422
    assert any(message in error["msg"] for error in response.json()["detail"])


async def test_admin_must_name_company(client, crew, auth_headers):
    response = await client.post(
        f"{API}/work-zones",
        json={"name": "Orphan", "center_latitude": 37.5, "center_longitude": 127.0},
        headers=auth_headers(crew["admin"]),
    )
    assert response.status_code == 422


async def test_zone_listing_is_company_scoped(client, seed, crew, auth_headers):
    await seed.circle_zone(uuid.uuid4(), name="Competitor")

    own = await client.get(f"{API}/work-zones", headers=auth_headers(crew["ep"]))
    assert [z["name"] for z in own.json()["work_zones"]] == ["Site A"]

    everything = await client.get(f"{API}/work-zones", headers=auth_headers(crew["admin"]))
    assert everything.json()["total"] == 2


async def test_workers_cannot_manage_zones(client, crew, auth_headers):
    response = await client.post(
        f"{API}/work-zones",
        json={"name": "Mine", "center_latitude": 37.5, "center_longitude": 127.0},
        headers=auth_headers(crew["worker_user"]),
    )
    assert response.status_code == 403


async def test_bp_cannot_edit_zones(client, crew, auth_headers):
    response = await client.patch(
        f"{API}/work-zones/{crew['zone'].id}",
        json={"name": "Renamed"},
        headers=auth_headers(crew["bp"]),
    )
    assert response.status_code == 403


async def test_update_zone_validates_merged_geometry(client, crew, auth_headers):
    url = f"{API}/work-zones/{crew['zone'].id}"
    headers = auth_headers(crew["ep"])

    renamed = await client.patch(url, json={"name": "Site A2", "radius_meters": 200}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["radius_meters"] == 200

    bad_radius = await client.patch(url, json={"radius_meters": 1}, headers=headers)
    assert bad_radius.status_code == 422

    # Switching to polygon without coordinates leaves no valid geometry
    bad_type = await client.patch(url, json={"zone_type": "polygon"}, headers=headers)
    assert bad_type.status_code == 422

    current = await client.get(url, headers=headers)
    assert current.json()["name"] == "Site A2"
    assert current.json()["zone_type"] == "circle"


async def test_delete_zone_deactivates(client, seed, crew, auth_headers):
    url = f"{API}/work-zones/{crew['zone'].id}"
    headers = auth_headers(crew["ep"])

    response = await client.delete(url, headers=headers)
    assert response.status_code == 204

    zone = await client.get(url, headers=headers)
    assert zone.status_code == 200
    assert zone.json()["is_active"] is False
    assert AuditAction.ZONE_DEACTIVATE in await audit_actions(seed.session)


async def test_foreign_zone_is_not_found(client, seed, crew, auth_headers):
    foreign = await seed.circle_zone(uuid.uuid4(), name="Competitor")
    response = await client.get(
        f"{API}/work-zones/{foreign.id}", headers=auth_headers(crew["ep"])
    )
    assert response.status_code == 404


# Check-ins

async def test_check_in_flow(client, crew, auth_headers):
    headers = auth_headers(crew["worker_user"])

    status_before = await client.get(f"{API}/check-ins/today", headers=headers)
    assert status_before.json()["checked_in"] is False

    response = await client.post(
        f"{API}/check-ins", json={**CENTER, "auth_method": "pin"}, headers=headers
    )
    assert response.status_code == 201
    body = response.json()
    assert body["is_within_zone"] is True
    assert body["distance_from_zone"] == 0
    assert body["work_zone_id"] == str(crew["zone"].id)

    again = await client.post(f"{API}/check-ins", json=CENTER, headers=headers)
    assert again.status_code == 409
    assert "Already checked in today" in again.json()["detail"]

    status_after = await client.get(f"{API}/check-ins/today", headers=headers)
    assert status_after.json()["checked_in"] is True
    assert status_after.json()["check_in"]["id"] == body["id"]

    mine = await client.get(f"{API}/check-ins/me", headers=headers)
    assert mine.json()["total"] == 1
    assert mine.json()["check_ins"][0]["work_zone_name"] == "Site A"


async def test_failed_audit_write_discards_check_in(client, seed, crew, auth_headers, monkeypatch):
    headers = auth_headers(crew["worker_user"])
    worker_id = crew["worker"].id

    async def broken_log(*args, **kwargs):
        raise InternalError()

    monkeypatch.setattr(audit_service, "log", broken_log)
    failed = await client.post(f"{API}/check-ins", json=CENTER, headers=headers)
    assert failed.status_code == 500

    result = await seed.session.execute(
        select(func.count()).select_from(CheckIn).where(CheckIn.worker_id == worker_id)
    )
    assert result.scalar() == 0

    monkeypatch.undo()
    retry = await client.post(f"{API}/check-ins", json=CENTER, headers=headers)
    assert retry.status_code == 201


async def test_check_in_rejects_out_of_range_coordinates(client, crew, auth_headers):
    response = await client.post(
        f"{API}/check-ins",
        json={"latitude": 120, "longitude": 126.9780},
        headers=auth_headers(crew["worker_user"]),
    )
    assert response.status_code == 422


async def test_managers_cannot_check_in(client, crew, auth_headers):
    response = await client.post(f"{API}/check-ins", json=CENTER, headers=auth_headers(crew["ep"]))
    assert response.status_code == 403


async def test_check_in_without_deployment(client, seed, auth_headers):
    user = await seed.user(UserRole.WORKER)
    await seed.worker(user=user)

    response = await client.post(f"{API}/check-ins", json=CENTER, headers=auth_headers(user))
    assert response.status_code == 404
    assert response.json()["detail"] == "No active deployment"


async def test_stats_endpoint(client, seed, crew, auth_headers):
    await client.post(f"{API}/check-ins", json=CENTER, headers=auth_headers(crew["worker_user"]))

    today = local_date(utc_now()).isoformat()
    for role in ("ep", "bp", "admin"):
        response = await client.get(
            f"{API}/check-ins/stats", params={"date": today}, headers=auth_headers(crew[role])
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 1
        assert body["expected_workers"] == 1
        assert body["attendance_rate"] == 100.0
        assert body["expected_workers_list"][0]["has_checked_in"] is True

    other_ep = await seed.user(UserRole.EP, company_id=uuid.uuid4())
    response = await client.get(f"{API}/check-ins/stats", headers=auth_headers(other_ep))
    assert response.json()["total"] == 0

    assert AuditAction.ATTENDANCE_STATS_VIEW in await audit_actions(seed.session)


async def test_workers_cannot_read_stats(client, crew, auth_headers):
    response = await client.get(f"{API}/check-ins/stats", headers=auth_headers(crew["worker_user"]))
    assert response.status_code == 403


async def test_manager_check_in_listing(client, crew, auth_headers):
    await client.post(f"{API}/check-ins", json=CENTER, headers=auth_headers(crew["worker_user"]))

    response = await client.get(
        f"{API}/check-ins",
        params={"worker_id": str(crew["worker"].id)},
        headers=auth_headers(crew["bp"]),
    )
    assert response.status_code == 200
    assert response.json()["total"] == 1
    assert response.json()["check_ins"][0]["worker_name"] == crew["worker"].name


# Locations

async def test_worker_reports_and_reads_own_track(client, seed, crew, auth_headers):
    headers = auth_headers(crew["worker_user"])
    worker_id = str(crew["worker"].id)
    start = utc_now() - timedelta(minutes=30)

    for minutes, lat in ((0, 37.5665), (10, 37.56651), (20, 37.5700)):
        response = await client.post(
            f"{API}/locations",
            json={
                "worker_id": worker_id,
                "latitude": lat,
                "longitude": 126.9780,
                "recorded_at": (start + timedelta(minutes=minutes)).isoformat(),
            },
            headers=headers,
        )
        assert response.status_code == 201

    latest = await client.get(f"{API}/locations/{worker_id}/latest", headers=headers)
    assert latest.json()["latitude"] == 37.5700

    history = await client.get(f"{API}/locations/{worker_id}/history", headers=headers)
    assert history.status_code == 200
    assert [loc["latitude"] for loc in history.json()["locations"]] == [37.5665, 37.56651, 37.5700]

    analysis = await client.get(f"{API}/locations/{worker_id}/analysis", headers=headers)
    assert analysis.status_code == 200
    body = analysis.json()
    assert body["total_time"] == 1200
    assert len(body["path"]) == 3
    assert len(body["stay_points"]) == 1
    assert body["stay_points"][0]["duration_seconds"] == 600

    actions = await audit_actions(seed.session)
    assert AuditAction.LOCATION_HISTORY_VIEW in actions
    assert AuditAction.TRAJECTORY_VIEW in actions


async def test_analysis_thresholds_override(client, seed, crew, auth_headers):
    worker_id = crew["worker"].id
    start = utc_now() - timedelta(minutes=10)
    await location_service.record_fix(seed.session, worker_id, 37.5665, 126.9780, recorded_at=start)
    await location_service.record_fix(
        seed.session, worker_id, 37.5665, 126.9780, recorded_at=start + timedelta(minutes=2)
    )
    await seed.session.commit()

    url = f"{API}/locations/{worker_id}/analysis"
    headers = auth_headers(crew["admin"])

    default = await client.get(url, headers=headers)
    assert default.json()["stay_points"] == []

    relaxed = await client.get(url, params={"stay_duration": 60}, headers=headers)
    assert len(relaxed.json()["stay_points"]) == 1


async def test_workers_cannot_read_other_tracks(client, seed, crew, auth_headers):
    other = await seed.worker(name="Choi Operator")
    headers = auth_headers(crew["worker_user"])

    history = await client.get(f"{API}/locations/{other.id}/history", headers=headers)
    assert history.status_code == 403

    ingest = await client.post(
        f"{API}/locations",
        json={"worker_id": str(other.id), "latitude": 37.5, "longitude": 127.0},
        headers=headers,
    )
    assert ingest.status_code == 403


async def test_company_users_limited_to_their_workers(client, seed, crew, auth_headers):
    stranger = await seed.worker(name="Jung Operator")
    await seed.deployment(stranger, uuid.uuid4())

    own = await client.get(
        f"{API}/locations/{crew['worker'].id}/history", headers=auth_headers(crew["ep"])
    )
    assert own.status_code == 200

    foreign = await client.get(
        f"{API}/locations/{stranger.id}/history", headers=auth_headers(crew["ep"])
    )
    assert foreign.status_code == 404


@pytest.mark.parametrize("coordinates", [
    {"latitude": 91, "longitude": 127.0},
    {"latitude": 37.5, "longitude": -181},
    {"latitude": "north", "longitude": 127.0},
])
async def test_ingest_rejects_bad_coordinates(client, crew, auth_headers, coordinates):
    response = await client.post(
        f"{API}/locations",
        json={"worker_id": str(crew["worker"].id), **coordinates},
        headers=auth_headers(crew["admin"]),
    )
    assert response.status_code == 422


async def test_latest_without_fixes(client, crew, auth_headers):
    response = await client.get(
        f"{API}/locations/{crew['worker'].id}/latest", headers=auth_headers(crew["admin"])
    )
    assert response.status_code == 404


async def test_live_map_shows_recent_workers_in_scope(client, seed, crew, auth_headers):
    stranger = await seed.worker(name="Yoon Operator")
    await seed.deployment(stranger, uuid.uuid4())
    now = utc_now()

    await location_service.record_fix(
        seed.session, crew["worker"].id, 37.5665, 126.9780, recorded_at=now - timedelta(minutes=2)
    )
    await location_service.record_fix(
        seed.session, stranger.id, 37.5, 127.0, recorded_at=now - timedelta(minutes=1)
    )
    await seed.session.commit()

    own = await client.get(f"{API}/locations/active", headers=auth_headers(crew["ep"]))
    assert own.status_code == 200
    assert own.json()["total"] == 1
    assert own.json()["locations"][0]["worker_name"] == crew["worker"].name

    partner = await client.get(f"{API}/locations/active", headers=auth_headers(crew["bp"]))
    assert [loc["worker_id"] for loc in partner.json()["locations"]] == [str(crew["worker"].id)]

    everyone = await client.get(f"{API}/locations/active", headers=auth_headers(crew["admin"]))
    assert everyone.json()["total"] == 2

    worker = await client.get(f"{API}/locations/active", headers=auth_headers(crew["worker_user"]))
    assert worker.status_code == 403


async def test_stale_fixes_leave_the_live_map(client, seed, crew, auth_headers):
    await location_service.record_fix(
        seed.session, crew["worker"].id, 37.5665, 126.9780,
        recorded_at=utc_now() - timedelta(hours=1)
    )
    await seed.session.commit()

    response = await client.get(f"{API}/locations/active", headers=auth_headers(crew["admin"]))
    assert response.json()["locations"] == []


async def test_latest_equipment_location(client, seed, crew, auth_headers):
    await location_service.record_fix(
        seed.session, crew["worker"].id, 37.5665, 126.9780, equipment_id="EXC-001"
    )
    await seed.session.commit()

    response = await client.get(
        f"{API}/locations/equipment/EXC-001/latest", headers=auth_headers(crew["ep"])
    )
    assert response.status_code == 200
    assert response.json()["worker_id"] == str(crew["worker"].id)

    foreign = await client.get(
        f"{API}/locations/equipment/CRN-9/latest", headers=auth_headers(crew["ep"])
    )
    assert foreign.status_code == 404

    silent = await client.get(
        f"{API}/locations/equipment/CRN-9/latest", headers=auth_headers(crew["admin"])
    )
    assert silent.status_code == 404


async def test_inverted_window_is_rejected(client, crew, auth_headers):
    now = utc_now()
    response = await client.get(
        f"{API}/locations/{crew['worker'].id}/history",
        params={"start_date": now.isoformat(), "end_date": (now - timedelta(hours=1)).isoformat()},
        headers=auth_headers(crew["admin"]),
    )
    assert response.status_code == 422


# Deployments

async def test_my_deployment(client, seed, crew, auth_headers):
    response = await client.get(f"{API}/deployments/me", headers=auth_headers(crew["worker_user"]))
    assert response.status_code == 200
    assert response.json()["role"] == "primary"
    assert response.json()["deployment"]["id"] == str(crew["deployment"].id)

    guide_user = await seed.user(UserRole.WORKER)
    guide = await seed.worker(name="Guide", user=guide_user)
    await seed.deployment(crew["worker"], crew["company"], guide_worker=guide)

    response = await client.get(f"{API}/deployments/me", headers=auth_headers(guide_user))
    assert response.json()["role"] == "guide"

    idle_user = await seed.user(UserRole.WORKER)
    await seed.worker(name="Idle", user=idle_user)
    response = await client.get(f"{API}/deployments/me", headers=auth_headers(idle_user))
    assert response.json()["role"] is None
    assert response.json()["deployment"] is None
