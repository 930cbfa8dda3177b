"""
Unit Tests for service wiring and restarts
"""
import pytest

from hostelpay.core.config import settings
from hostelpay.services.container import build_services


@pytest.fixture
def memory_config(tmp_path):
    def make(seed: bool):
        return settings.model_copy(update={
            "LOCAL_CACHE_DIR": str(tmp_path / "restart-cache"),
            "REMOTE_STORE_URL": "memory://",
            "SEED_SAMPLE_DATA": seed,
        })
    return make


class TestMemoryBackendRestart:

    async def test_records_survive_restart(self, memory_config, new_student, new_expense):
        services = build_services(memory_config(False))
        await services.start(run_background=False)
        student = await services.data.add_student(new_student())
        expense = await services.data.add_expense(new_expense())
        await services.stop()

        restarted = build_services(memory_config(False))
        await restarted.start(run_background=False)

        assert [s.id for s in await restarted.data.list_students()] == [student.id]
        assert [e.id for e in await restarted.data.list_expenses()] == [expense.id]
        assert await restarted.remote_stores["students"].get_by_id(student.id) is not None
        await restarted.stop()

    async def test_samples_seeded_once(self, memory_config, new_student):
        services = build_services(memory_config(True))
        await services.start(run_background=False)
        assert len(await services.data.list_students()) == 5
        first = (await services.data.list_students())[0]
        await services.data.delete_student(first.id)
        await services.data.add_student(new_student(name="Arjun Rao"))
        await services.stop()

        restarted = build_services(memory_config(True))
        await restarted.start(run_background=False)

        names = [s.name for s in await restarted.data.list_students()]
        assert len(names) == 5
        assert "Arjun Rao" in names
        assert first.name not in names
        await restarted.stop()

    async def test_admin_survives_restart(self, memory_config):
        services = build_services(memory_config(False))
        await services.start(run_background=False)
        _, admin = await services.auth.login(settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD)
        await services.auth.change_password(admin, settings.DEFAULT_ADMIN_PASSWORD, "warden-pass")
        await services.stop()

        restarted = build_services(memory_config(False))
        await restarted.start(run_background=False)

        token, _ = await restarted.auth.login(settings.DEFAULT_ADMIN_USERNAME, "warden-pass")
        assert token
        await restarted.stop()
