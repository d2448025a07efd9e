from cloudlog.execution_context import SystemContext
from cloudlog.fallback_sink import StreamLineSink
from cloudlog.logger import new_logger
from cloudlog.remote.zmq_backend import LogCollector, ZmqBackend

ENDPOINT = "tcp://127.0.0.1:5570"


def main() -> None:
    collector = LogCollector(ENDPOINT, logger=print)
    ctx = SystemContext.background()
    fallback = StreamLineSink(prefix="BKP: ")

    log = new_logger(
        ctx,
        ENDPOINT,
        "cloudlog-demo",
        fallback,
        {"env": "demo", "host": "localhost"},
        backend=ZmqBackend(logger=print),
    )

    log.info("service started", "port", "8080")
    log.warn("cache miss ratio high", {"ratio": "0.42"})
    log.debug("odd metadata", "orphan")

    # Cancel mid-run: subsequent calls go to the fallback sink.
    ctx.cancel("shutdown")
    log.error("remote is no longer used", reason=str(ctx.reason))

    for item in collector.drain(3):
        print("Collected:", item.stream, item.entry.severity, item.entry.payload, item.labels)
        print("-" * 60)

    log.close()
    collector.close()

    # Degraded mode: no collector endpoint at all.
    degraded = new_logger(ctx, "", "cloudlog-demo", fallback, backend=ZmqBackend())
    degraded.info("goes straight to the fallback", "k", "v")
    degraded.close()


if __name__ == "__main__":
    main()
