from dataclasses import dataclass

@dataclass(frozen=True)
class AppConfig:
    debug: bool = False  # print tracebacks from main()
    log_level: str = "INFO"
    default_rows: int = 100  # rows per entity unless overridden
    auto_cardinality: bool = False  # power-law FK clustering for 1:N / N:1
    seed: int = 1  # repeatable synthetic keys
    imbalance_ratio: int = 10  # row-count ratio that triggers a cardinality warning
