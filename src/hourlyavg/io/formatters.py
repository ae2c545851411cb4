from hourlyavg.domain.record import AggregateLine


class AggregateLineFormatter:
    """Render ``<key>:00:00Z <average>`` with the average as ``%8.4f``."""

    def __call__(self, item: AggregateLine) -> str:
        return f"{item.key}:00:00Z {item.average:8.4f}\n"
