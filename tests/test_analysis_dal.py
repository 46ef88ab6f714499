import asyncio

from dal.analysis_dal import AnalysisDAL
from models.analysis_record import AnalysisRecord
from services.result_persister import ResultPersister
from utils.database_init import AsyncDatabaseInitializer


def test_create_and_read_back_record(tmp_path):
    dal = AnalysisDAL(AsyncDatabaseInitializer(tmp_path / "db"))
    record = AnalysisRecord(
        id=None,
        image_url="https://cdn.example.com/a.jpg",
        analysis_data={"part_name": "Bumper", "confidence_score": 90},
        model_used="gpt-5-mini",
    )

    async def go():
        record_id = await dal.create_record(record)
        return record_id, await dal.get_record_by_id(record_id)

    record_id, stored = asyncio.run(go())

    assert stored.id == record_id
    assert stored.analysis_data == {"part_name": "Bumper", "confidence_score": 90}
    assert stored.model_used == "gpt-5-mini"
    assert stored.created_at > 0


def test_list_records_newest_first_and_survives_reinitialisation(tmp_path):
    async def go():
        first = AnalysisDAL(AsyncDatabaseInitializer(tmp_path))
        await first.create_record(AnalysisRecord(id=None, image_url="one", created_at=1))
        await first.create_record(AnalysisRecord(id=None, image_url="two", created_at=2))
        second = AnalysisDAL(AsyncDatabaseInitializer(tmp_path))
        return await second.list_records(limit=10)

    records = asyncio.run(go())

    assert [r.image_url for r in records] == ["two", "one"]


def test_missing_record_returns_none(tmp_path):
    dal = AnalysisDAL(AsyncDatabaseInitializer(tmp_path))

    assert asyncio.run(dal.get_record_by_id(42)) is None


def test_persister_swallows_database_failures(tmp_path):
    class BrokenInitializer:
        def connection(self):
            raise OSError("disk full")

    persister = ResultPersister(AnalysisDAL(BrokenInitializer()))

    result = asyncio.run(persister.persist(AnalysisRecord(id=None, image_url="x")))

    assert result is None
