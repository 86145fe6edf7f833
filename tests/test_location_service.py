import uuid
from datetime import datetime, timedelta, timezone

import pytest

from worksite.core.exceptions import NotFoundError, ValidationError
from worksite.services.attendance_aggregator import AttendanceScope
from worksite.services.location_service import location_service

T0 = datetime(2024, 3, 4, 0, 0)


async def test_record_fix_stores_naive_utc(seed):
    worker = await seed.worker()
    kst = timezone(timedelta(hours=9))

    fix = await location_service.record_fix(
        seed.session,
        worker.id,
        37.5665,
        126.9780,
        accuracy=8.5,
        equipment_id="EXC-001",
        recorded_at=datetime(2024, 3, 4, 9, 0, tzinfo=kst),
    )

    assert fix.id is not None
    assert fix.recorded_at == T0
    assert fix.received_at is not None
    assert fix.equipment_id == "EXC-001"


async def test_record_fix_defaults_recorded_at_to_now(seed):
    worker = await seed.worker()
    fix = await location_service.record_fix(seed.session, worker.id, 37.5, 127.0)
    assert fix.recorded_at == fix.received_at


@pytest.mark.parametrize("lat,lng", [(95, 127.0), (37.5, 200), (float("inf"), 127.0)])
async def test_record_fix_rejects_bad_coordinates(seed, lat, lng):
    worker = await seed.worker()
    with pytest.raises(ValidationError):
        await location_service.record_fix(seed.session, worker.id, lat, lng)


async def test_record_fix_requires_known_worker(seed):
    with pytest.raises(NotFoundError):
        await location_service.record_fix(seed.session, uuid.uuid4(), 37.5, 127.0)


async def test_latest_and_history(seed):
    worker = await seed.worker()
    for minutes in (30, 0, 10):
        await location_service.record_fix(
            seed.session, worker.id, 37.5 + minutes / 10000, 127.0,
            recorded_at=T0 + timedelta(minutes=minutes)
        )
    await seed.session.commit()

    latest = await location_service.latest_fix(seed.session, worker.id)
    assert latest.recorded_at == T0 + timedelta(minutes=30)

    history = await location_service.history(
        seed.session, worker.id, T0, T0 + timedelta(minutes=15)
    )
    assert [f.recorded_at for f in history] == [T0, T0 + timedelta(minutes=10)]


async def test_latest_without_fixes(seed):
    worker = await seed.worker()
    assert await location_service.latest_fix(seed.session, worker.id) is None


async def test_latest_fix_for_equipment(seed):
    worker = await seed.worker()
    for minutes, equipment in ((0, "EXC-001"), (5, "EXC-001"), (9, "CRN-7")):
        await location_service.record_fix(
            seed.session, worker.id, 37.5, 127.0 + minutes / 1000,
            equipment_id=equipment, recorded_at=T0 + timedelta(minutes=minutes)
        )
    await seed.session.commit()

    latest = await location_service.latest_fix_for_equipment(seed.session, "EXC-001")
    assert latest.recorded_at == T0 + timedelta(minutes=5)
    assert await location_service.latest_fix_for_equipment(seed.session, "DZR-3") is None


async def test_active_locations_keep_latest_fix_per_worker(seed):
    moving = await seed.worker(name="Moving")
    idle = await seed.worker(name="Idle")
    for minutes in (1, 8, 4):
        await location_service.record_fix(
            seed.session, moving.id, 37.5 + minutes / 1000, 127.0,
            recorded_at=T0 + timedelta(minutes=minutes)
        )
    # Older than the window
    await location_service.record_fix(
        seed.session, idle.id, 37.6, 127.0, recorded_at=T0 - timedelta(minutes=30)
    )
    await seed.session.commit()
    seed.session.expunge_all()

    active = await location_service.active_locations(seed.session, AttendanceScope(), since=T0)

    assert [(f.worker_id, f.recorded_at) for f in active] == [
        (moving.id, T0 + timedelta(minutes=8))
    ]
    assert active[0].worker.name == "Moving"


async def test_active_locations_are_scoped_by_deployment(seed):
    own_company, other_company = uuid.uuid4(), uuid.uuid4()
    own = await seed.worker(name="Own")
    other = await seed.worker(name="Other")
    undeployed = await seed.worker(name="Spare")
    await seed.deployment(own, own_company)
    await seed.deployment(other, other_company)

    await location_service.record_fix(seed.session, own.id, 37.5, 127.0, recorded_at=T0)
    await location_service.record_fix(seed.session, other.id, 37.5, 127.0, recorded_at=T0)
    # Not deployed, but riding equipment that is deployed (EXC-001)
    await location_service.record_fix(
        seed.session, undeployed.id, 37.5, 127.0, equipment_id="EXC-001", recorded_at=T0
    )
    await seed.session.commit()

    scope = AttendanceScope(issuing_company_id=own_company)
    active = await location_service.active_locations(seed.session, scope, since=T0)

    assert {f.worker_id for f in active} == {own.id, undeployed.id}
