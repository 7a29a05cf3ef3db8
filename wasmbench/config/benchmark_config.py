from pathlib import Path
from typing import List, Optional

from wasmbench.config.engine_variant import EngineVariant

DEFAULT_ITERATIONS = 10000
DEFAULT_MEMORY_LIMIT_PAGES = 62
DEFAULT_ROUNDS = 1


class BenchmarkConfig:
    iterations: int = DEFAULT_ITERATIONS
    memory_limit_pages: int = DEFAULT_MEMORY_LIMIT_PAGES
    compilation_cache_dir: Optional[Path] = None
    rounds: int = DEFAULT_ROUNDS
    output_cwd: Path = Path("results")
    variants: List[EngineVariant]

    def __init__(self) -> None:
        self.variants = []

    def iterations_for(self, variant: EngineVariant) -> int:
        return variant.iterations or self.iterations

    def __repr__(self) -> str:
        return (f"BenchmarkConfig(\n"
                f"  iterations={self.iterations},\n"
                f"  memory_limit_pages={self.memory_limit_pages},\n"
                f"  compilation_cache_dir={self.compilation_cache_dir},\n"
                f"  rounds={self.rounds},\n"
                f"  output_cwd={self.output_cwd},\n"
                f"  variants={[v.name for v in self.variants]}\n"
                f")")
