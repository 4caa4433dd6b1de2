"""
Service level tests that control the clock and the cache
"""
import fnmatch
from datetime import datetime

import pytest
from sqlalchemy import select, func

from app.config import settings
from app.core.security import hash_password, verify_password
from app.database import session_scope
from app.models.appointment import Appointment, AppointmentStatus
from app.models.catalog import Category, Niche, ServiceTemplate
from app.models.finance import PaymentWithdrawal, WithdrawalStatus
from app.models.provider import Availability, ProviderService
from app.models.user import User, UserRole
from app.services.availability_cache import AvailabilityCache
from app.services.balance_service import BalanceService
from app.services.time_slot_service import TimeSlotService
from app.tools.create_admin import upsert_admin

# Monday
DAY = "2025-03-10"


class InMemoryRedis:
    """Stands in for RedisClient inside these tests"""

    def __init__(self):
        self.store = {}

    @property
    def is_connected(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value

    async def delete_pattern(self, pattern):
        keys = [key for key in self.store if fnmatch.fnmatch(key, pattern)]
        for key in keys:
            del self.store[key]
        return len(keys)


async def seed_provider(session, start="08:00", end="12:00"):
    provider = User(email="p@agendoai.com.br", password_hash=hash_password("Test@1234"), name="P", role=UserRole.PROVIDER)
    client = User(email="c@agendoai.com.br", password_hash=hash_password("Test@1234"), name="C", role=UserRole.CLIENT)
    niche = Niche(name="Beleza")
    session.add_all([provider, client, niche])
    await session.flush()

    category = Category(name="Cabelo", niche_id=niche.id)
    session.add(category)
    await session.flush()

    template = ServiceTemplate(name="Corte", category_id=category.id, niche_id=niche.id, duration=60)
    session.add(template)
    await session.flush()

    service = ProviderService(provider_id=provider.id, template_id=template.id, execution_time=60, price=5000)
    session.add(service)
    session.add(Availability(provider_id=provider.id, day_of_week=1, start_time=start, end_time=end))
    await session.commit()
    return provider, client, service


def appointment(provider, client, service, start_time, end_time, status=AppointmentStatus.PENDING, price=5000):
    return Appointment(
        client_id=client.id,
        provider_id=provider.id,
        provider_service_id=service.id,
        date=DAY,
        start_time=start_time,
        end_time=end_time,
        status=status,
        service_price=price,
        service_fee=175,
        total_price=price + 175,
    )


def starts(result):
    return [slot["start_time"] for slot in result["slots"]]


class TestTimeSlotService:
    """Test slot computation against a fixed clock"""

    async def test_today_drops_slots_inside_margin(self, db_session):
        provider, _, service = await seed_provider(db_session)

        result = await TimeSlotService(db_session).get_available_slots(
            provider.id, DAY, provider_service_id=service.id, now=datetime(2025, 3, 10, 10, 0)
        )

        assert starts(result) == ["10:30", "11:00"]
        assert result["duration"] == 60

    async def test_future_day_keeps_all(self, db_session):
        provider, _, service = await seed_provider(db_session)

        result = await TimeSlotService(db_session).get_available_slots(
            provider.id, DAY, provider_service_id=service.id, now=datetime(2025, 3, 9, 23, 0)
        )

        assert starts(result) == ["08:00", "08:30", "09:00", "09:30", "10:00", "10:30", "11:00"]

    async def test_canceled_appointments_do_not_block(self, db_session):
        provider, client, service = await seed_provider(db_session)
        db_session.add(appointment(provider, client, service, "08:00", "09:00"))
        db_session.add(appointment(provider, client, service, "10:00", "11:00", status=AppointmentStatus.CANCELED))
        await db_session.commit()

        result = await TimeSlotService(db_session).get_available_slots(
            provider.id, DAY, duration=60, now=datetime(2025, 3, 1, 8, 0)
        )

        assert starts(result) == ["09:00", "09:30", "10:00", "10:30", "11:00"]

    async def test_check_slot_uses_clock(self, db_session):
        provider, _, _ = await seed_provider(db_session)
        service = TimeSlotService(db_session)
        now = datetime(2025, 3, 10, 10, 0)

        assert not await service.check_slot(provider.id, DAY, "10:00", 60, now=now)
        assert await service.check_slot(provider.id, DAY, "10:30", 60, now=now)
        assert not await service.check_slot(provider.id, DAY, "11:30", 60, now=now)

    async def test_check_slot_can_ignore_an_appointment(self, db_session):
        provider, client, service = await seed_provider(db_session)
        booked = appointment(provider, client, service, "09:00", "10:00")
        db_session.add(booked)
        await db_session.commit()
        slots = TimeSlotService(db_session)
        now = datetime(2025, 3, 1, 8, 0)

        assert not await slots.check_slot(provider.id, DAY, "09:30", 60, now=now)
        assert await slots.check_slot(provider.id, DAY, "09:30", 60, now=now, exclude_appointment_id=booked.id)

    async def test_closed_weekday(self, db_session):
        provider, _, _ = await seed_provider(db_session)

        result = await TimeSlotService(db_session).get_available_slots(
            provider.id, "2025-03-11", duration=30, now=datetime(2025, 3, 1, 8, 0)
        )

        assert result["slots"] == []


class TestAvailabilityCache:
    """Test cached slot lists"""

    @pytest.fixture
    def cache(self, monkeypatch):
        monkeypatch.setattr(settings, "REDIS_ENABLED", True)
        return AvailabilityCache(InMemoryRedis(), ttl=60)

    async def test_cached_until_invalidated(self, db_session, cache):
        provider, client, service = await seed_provider(db_session)
        slots = TimeSlotService(db_session, cache)
        now = datetime(2025, 3, 1, 8, 0)

        first = await slots.get_available_slots(provider.id, DAY, duration=60, now=now)
        assert cache.key(provider.id, DAY, 60) in cache.redis.store

        db_session.add(appointment(provider, client, service, "08:00", "09:00"))
        await db_session.commit()

        assert starts(await slots.get_available_slots(provider.id, DAY, duration=60, now=now)) == starts(first)

        await cache.invalidate(provider.id, DAY)
        assert starts(await slots.get_available_slots(provider.id, DAY, duration=60, now=now))[0] == "09:00"

    async def test_past_filter_applies_to_cached_slots(self, db_session, cache):
        provider, _, _ = await seed_provider(db_session)
        slots = TimeSlotService(db_session, cache)

        early = await slots.get_available_slots(provider.id, DAY, duration=60, now=datetime(2025, 3, 10, 7, 0))
        late = await slots.get_available_slots(provider.id, DAY, duration=60, now=datetime(2025, 3, 10, 10, 0))

        assert starts(early)[0] == "08:00"
        assert starts(late) == ["10:30", "11:00"]

    async def test_invalidate_all_dates(self, cache):
        await cache.set(1, "2025-03-10", 60, {"slots": []})
        await cache.set(1, "2025-03-11", 30, {"slots": []})
        await cache.set(2, "2025-03-10", 60, {"slots": []})

        await cache.invalidate(1)

        assert list(cache.redis.store) == ["slots:2:2025-03-10:60"]

    async def test_disabled_cache_is_a_no_op(self):
        cache = AvailabilityCache(InMemoryRedis())

        await cache.set(1, DAY, 60, {"slots": []})

        assert cache.redis.store == {}
        assert await cache.get(1, DAY, 60) is None


class TestBalanceService:
    """Test balance recomputation"""

    async def test_balance_components(self, db_session):
        provider, client, service = await seed_provider(db_session)
        db_session.add_all([
            appointment(provider, client, service, "08:00", "09:00", AppointmentStatus.COMPLETED, price=8000),
            appointment(provider, client, service, "09:00", "10:00", AppointmentStatus.COMPLETED, price=4550),
            appointment(provider, client, service, "10:00", "11:00", AppointmentStatus.CONFIRMED, price=9999),
            PaymentWithdrawal(provider_id=provider.id, amount=30.0, status=WithdrawalStatus.COMPLETED, payment_details={}),
            PaymentWithdrawal(provider_id=provider.id, amount=20.0, status=WithdrawalStatus.PROCESSING, payment_details={}),
            PaymentWithdrawal(provider_id=provider.id, amount=50.0, status=WithdrawalStatus.FAILED, payment_details={}),
        ])
        await db_session.commit()

        balance = await BalanceService(db_session).sync_provider_balance(provider.id)

        assert balance.balance == 95.5
        assert balance.pending_balance == 20.0
        assert balance.available_balance == 75.5

    async def test_sync_is_idempotent(self, db_session):
        provider, client, service = await seed_provider(db_session)
        db_session.add(appointment(provider, client, service, "08:00", "09:00", AppointmentStatus.COMPLETED))
        await db_session.commit()

        balances = BalanceService(db_session)
        await balances.sync_provider_balance(provider.id)
        balance = await balances.sync_provider_balance(provider.id)
        await db_session.commit()

        transactions, total = await balances.list_transactions(provider.id)
        assert total == 1
        assert transactions[0].amount == 50.0
        assert balance.balance == 50.0


class TestSessionScope:
    """Test the per-request unit of work"""

    async def test_flushed_changes_are_committed(self, session_factory):
        async with session_scope(session_factory) as session:
            session.add(Niche(name="Pets"))
            await session.flush()

        async with session_factory() as session:
            names = (await session.execute(select(Niche.name))).scalars().all()
        assert names == ["Pets"]

    async def test_error_rolls_back(self, session_factory):
        with pytest.raises(RuntimeError):
            async with session_scope(session_factory) as session:
                session.add(Niche(name="Pets"))
                await session.flush()
                raise RuntimeError("handler failed")

        async with session_factory() as session:
            count = (await session.execute(select(func.count(Niche.id)))).scalar()
        assert count == 0


class TestCreateAdmin:
    """Test the admin bootstrap command"""

    async def test_creates_admin(self, db_session):
        user = await upsert_admin(db_session, "Dono@AgendoAI.com.br", "Admin@1234", "Dono")

        assert user.id is not None
        assert user.email == "dono@agendoai.com.br"
        assert user.role == UserRole.ADMIN
        assert user.is_verified is True
        assert verify_password("Admin@1234", user.password_hash)

    async def test_promotes_existing_user(self, db_session):
        existing = User(
            email="maria@agendoai.com.br",
            password_hash=hash_password("Test@1234"),
            name="Maria",
            role=UserRole.CLIENT,
            is_active=False,
        )
        db_session.add(existing)
        await db_session.commit()

        user = await upsert_admin(db_session, "maria@agendoai.com.br", "Nova@5678", "Ignorado")

        assert user.id == existing.id
        assert user.name == "Maria"
        assert user.role == UserRole.ADMIN
        assert user.is_active is True
        assert verify_password("Nova@5678", user.password_hash)
        total = (await db_session.execute(select(func.count(User.id)))).scalar()
        assert total == 1
