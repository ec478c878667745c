"""Run an RQ worker for the reminder scan queue."""

from rq import Worker

from invoice_engine.core.logging_setup import configure_logging
from invoice_engine.workers.queue import get_queue


def main() -> None:
    configure_logging()
    queue = get_queue()
    Worker([queue], connection=queue.connection).work()


if __name__ == "__main__":
    main()
