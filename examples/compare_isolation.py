"""Compare REPEATABLE READ and SERIALIZABLE on the same workload.

Runs the benchmark twice against a local database and prints attempted and
successful throughput side by side. Run it with:

    python examples/compare_isolation.py "dbname=postgres"
"""

from __future__ import annotations

import sys

from sibench import BenchmarkRunner, BenchmarkSettings


def main(conn_info: str) -> None:
    for ssi in (False, True):
        settings = BenchmarkSettings(
            conn_info=conn_info,
            queries_per_update=1,
            rows=10,
            seconds=10,
            threads=4,
            ssi=ssi,
        )
        report = BenchmarkRunner(settings).run()
        print(
            f"{report.isolation_mode.value:>16}: "
            f"attempted={report.throughput:.1f} tps, "
            f"successful={report.successful_throughput:.1f} tps, "
            f"failures={report.total_failures}"
        )


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else "dbname=postgres")
