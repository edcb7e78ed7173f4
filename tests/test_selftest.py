from utils.selftest import SELF_TESTS, SelfTestResult, run_self_tests


def test_all_self_tests_pass():
    results = run_self_tests()
    assert len(results) == len(SELF_TESTS)
    failed = [r.name for r in results if not r.passed]
    assert failed == []


def test_results_are_named_pairs():
    result = run_self_tests()[0]
    assert isinstance(result, SelfTestResult)
    assert result.name == "scale halves entries"
    assert result.passed is True


def test_raising_check_is_reported_as_failure(monkeypatch):
    def broken():
        raise RuntimeError("boom")

    monkeypatch.setattr("utils.selftest.SELF_TESTS", [("broken", broken)])
    (result,) = run_self_tests()
    assert not result.passed
    assert result.name == "broken (RuntimeError: boom)"
