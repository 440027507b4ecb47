import pytest

from curator.db import Database
from curator.models import ArticleStatus, ReportStatus, Severity
from curator.service import CuratorService

from stubs import FailingStore, StubCollector, StubGenerator, StubOracle, StubPublisher, raw_item, run


@pytest.fixture
def service():
    svc = CuratorService(
        store=Database(enabled=False),
        collector=StubCollector([raw_item("A"), raw_item("B"), raw_item("C")]),
        oracle=StubOracle({"A": (5, "X"), "B": (3, "X"), "C": (2, "X")}),
        generator=StubGenerator("# Digest"),
        publisher=StubPublisher(),
    )
    svc.update_config(categories=["X"], category_quotas={"X": 2}, score_threshold=4)
    return svc


def test_full_cycle(service):
    assert run(service.collect()).count == 3

    processed = run(service.process())
    assert processed.ok and processed.count == 2
    assert {a.title for a in service.articles(status=ArticleStatus.SELECTED)} == {"A", "B"}

    generated = run(service.generate_report())
    assert generated.ok
    report = generated.payload
    assert report.status == ReportStatus.PENDING_REVIEW

    published = run(service.publish_report(report.id, "# Final"))
    assert published.ok
    assert service.report_list()[0].status == ReportStatus.PUBLISHED


def test_failures_become_results(service):
    before = len(service.logs())

    result = run(service.generate_report())

    assert not result.ok
    assert "no SELECTED articles" in result.message
    assert len(service.logs()) == before + 1
    assert service.logs()[0].severity == Severity.ERROR


def test_publish_unknown_report(service):
    result = run(service.publish_report("nope", "x"))
    assert not result.ok


def test_invalid_config_update(service):
    result = service.update_config(score_threshold=9)
    assert not result.ok
    assert service.config.score_threshold == 4


def test_process_with_nothing_to_do(service):
    result = run(service.process())
    assert result.ok
    assert result.count == 0


def test_run_cycle_drafts_a_report(service):
    results = run(service.run_cycle())
    assert [r.ok for r in results] == [True, True, True]
    assert service.reports.pending_review() is not None


def test_article_search(service):
    run(service.collect())
    assert [a.title for a in service.articles(search="b")] == ["B"]


def build_on(store):
    return CuratorService(
        store=store,
        collector=StubCollector([raw_item("A"), raw_item("B")]),
        oracle=StubOracle({"A": (5, "X"), "B": (3, "X")}),
        generator=StubGenerator("# Digest"),
        publisher=StubPublisher(),
    )


def test_collect_store_failure_ends_with_an_error_entry():
    svc = build_on(FailingStore(["articles"]))

    result = run(svc.collect())

    assert not result.ok
    assert "disk full" in result.message
    entries = svc.logs()
    assert [e.severity for e in entries] == [Severity.ERROR, Severity.INFO]
    assert svc.articles() == []


def test_process_store_failure_ends_with_an_error_entry():
    store = FailingStore()
    svc = build_on(store)
    run(svc.collect())
    store.failing_keys.add("articles")

    result = run(svc.process())

    assert not result.ok
    assert svc.logs()[0].severity == Severity.ERROR
    assert all(a.status == ArticleStatus.RAW for a in svc.articles())


def test_generate_store_failure_ends_with_an_error_entry():
    store = FailingStore()
    svc = build_on(store)
    run(svc.collect())
    run(svc.process())
    store.failing_keys.add("reports")

    result = run(svc.generate_report())

    assert not result.ok
    assert svc.logs()[0].severity == Severity.ERROR
    assert store.load("reports") is None


def test_publish_store_failure_ends_with_an_error_entry():
    store = FailingStore()
    svc = build_on(store)
    run(svc.collect())
    run(svc.process())
    report = run(svc.generate_report()).payload
    store.failing_keys.add("reports")

    result = run(svc.publish_report(report.id, "# Final"))

    assert not result.ok
    assert svc.logs()[0].severity == Severity.ERROR
    assert svc.reports.get(report.id).status == ReportStatus.PENDING_REVIEW


def test_config_store_failure_ends_with_an_error_entry():
    svc = build_on(FailingStore(["config"]))

    result = svc.update_config(score_threshold=2)

    assert not result.ok
    assert svc.logs()[0].severity == Severity.ERROR
    assert svc.config.score_threshold == 4


@pytest.mark.parametrize("changes", [
    {"category_quotas": [1, 2]},
    {"report_title": 5},
    {"categories": "AI", "category_quotas": {"A": 1}},
])
def test_badly_typed_config_is_rejected_not_raised(service, changes):
    result = service.update_config(**changes)

    assert not result.ok
    assert service.config.categories == ["X"]
    assert service.config.category_quotas == {"X": 2}
