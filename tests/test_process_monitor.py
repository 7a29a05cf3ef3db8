from wasmbench.service.monitor.process_monitor import ProcessMonitor


def test_rss_delta_of_current_process():
    monitor = ProcessMonitor()
    monitor.start()
    data = bytearray(8 * 1024 * 1024)
    delta = monitor.stop()
    assert isinstance(delta, int)
    assert monitor.before.rss_bytes > 0
    assert monitor.after.timestamp >= monitor.before.timestamp
    del data


def test_missing_process_yields_no_delta():
    monitor = ProcessMonitor(pid=2 ** 22 + 12345)
    monitor.start()
    assert monitor.before is None
    assert monitor.stop() is None
