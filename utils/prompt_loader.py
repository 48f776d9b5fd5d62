from pathlib import Path
from typing import Optional, Union

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


def load_prompt(name: str, prompts_dir: Optional[Union[str, Path]] = None) -> str:
    """
    Read a prompt template from the prompts directory.
    Raises FileNotFoundError when missing; callers keep a baked-in default.
    """
    base = Path(prompts_dir) if prompts_dir else PROMPTS_DIR
    path = base / name
    if not path.is_file():
        raise FileNotFoundError(f"Prompt not found: {path}")
    return path.read_text(encoding="utf-8").strip()
