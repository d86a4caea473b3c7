import pytest
from opentelemetry.trace import SpanKind, StatusCode

from petstore.errors import DuplicateActionError, QueryError
from petstore.repositories.pets import PetRepository
from petstore.schemas import LikeToggleRequest, PetFilter
from petstore.services.like_toggle import LikeToggleSaga


def finished(spans, name):
    return [span for span in spans.get_finished_spans() if span.name == name]


def like() -> LikeToggleRequest:
    return LikeToggleRequest(pet_id="pet-1", user_id="user-1", value=True)


class TestSpanNesting:
    async def test_statement_spans_join_the_saga_trace(self, spans, store, pet):
        """Every SQL statement of a toggle belongs to the toggle's trace"""
        spans.clear()
        await LikeToggleSaga(store).run(like())

        [saga] = finished(spans, "LikeToggleSaga.run")
        statements = [s for s in spans.get_finished_spans() if s.name.startswith("DataStore.")]

        assert {s.name for s in statements} >= {"DataStore.select", "DataStore.update", "DataStore.insert"}
        for span in statements:
            assert span.context.trace_id == saga.context.trace_id
            assert span.parent is not None
            assert span.kind == SpanKind.CLIENT
            assert span.attributes["db.statement"]
            assert span.attributes["db.system"] == "postgresql"

    async def test_repository_span_is_parent_of_statement_span(self, spans, store, pet):
        spans.clear()
        await PetRepository(store).find(PetFilter(name="Rex"))

        [find] = finished(spans, "PetRepository.find")
        [select] = finished(spans, "DataStore.select")

        assert select.parent.span_id == find.context.span_id
        assert select.attributes["db.sql.table"] == "pets"
        assert select.attributes["db.operation"] == "SELECT"


class TestSpanStatus:
    async def test_duplicate_like_is_not_an_error(self, spans, store, pet):
        saga = LikeToggleSaga(store)
        await saga.run(like())
        spans.clear()

        with pytest.raises(DuplicateActionError):
            await saga.run(like())

        [run] = finished(spans, "LikeToggleSaga.run")
        assert run.status.status_code != StatusCode.ERROR
        assert run.attributes["business.code"] == "00001I"

    async def test_failed_statement_is_an_error(self, spans, store):
        spans.clear()

        with pytest.raises(QueryError):
            await store.select_where("pets", "name = :name", {})

        [select] = finished(spans, "DataStore.select")
        assert select.status.status_code == StatusCode.ERROR
        assert select.events[0].name == "exception"
