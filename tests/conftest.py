import pytest
import pytest_asyncio
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from petstore.models import Base
from petstore.repositories.pets import PetRepository
from petstore.schemas import Pet, Shop
from petstore.sql.datastore import DataStore


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database with the full schema."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def store(engine) -> DataStore:
    return DataStore(engine)


@pytest_asyncio.fixture
async def pet(store) -> Pet:
    """A pet with 10 likes and no favorites rows."""
    return await PetRepository(store).create(
        Pet(
            id="pet-1",
            name="Rex",
            breed="Shiba",
            gender="Male",
            price=1200.0,
            likes=10,
            shop=Shop(name="Shop A", location="Tokyo"),
            reference_number="REF001",
            tags=["calm", "small"],
        )
    )


@pytest.fixture(scope="session")
def span_exporter() -> InMemorySpanExporter:
    """Process-wide SDK tracer provider recording finished spans in memory."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    return exporter


@pytest.fixture
def spans(span_exporter) -> InMemorySpanExporter:
    span_exporter.clear()
    return span_exporter
