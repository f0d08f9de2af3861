import time

from adrewards.jobs.session_reaper import SessionReaper


def test_run_once_sweeps_expired_sessions(service, clock):
    service.start_watch("user-1", "SYNDICATED-1")
    clock.advance(seconds=service.sessions.ttl_seconds + 5)
    reaper = SessionReaper(service, interval_seconds=60)
    assert reaper.run_once() == 1
    assert service.sessions.quota.snapshot() == {}


def test_run_once_logs_and_survives_errors(service, monkeypatch):
    def _boom():
        raise RuntimeError("store exploded")

    monkeypatch.setattr(service, "sweep_expired_sessions", _boom)
    assert SessionReaper(service).run_once() == 0


def test_background_thread_sweeps_and_stops(service, clock):
    service.start_watch("user-1", "SYNDICATED-1")
    clock.advance(seconds=service.sessions.ttl_seconds + 5)
    reaper = SessionReaper(service, interval_seconds=0.01)
    reaper.start()
    try:
        deadline = time.time() + 2.0
        while service.sessions.active_sessions() and time.time() < deadline:
            time.sleep(0.01)
    finally:
        reaper.stop(timeout=1.0)
    assert service.sessions.active_sessions() == 0
