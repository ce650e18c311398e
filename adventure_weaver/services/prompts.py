import re
from typing import Dict, List, Sequence

# ——— JSON extraction ——————————————————————————————————

def extract_json(raw: str) -> str:
    # Strip fences (case-insensitive), then grab the outermost {...}
    cleaned = re.sub(r"```(?:json)?\s*", "", raw.strip(), flags=re.IGNORECASE)
    m = re.search(r"\{.*\}", cleaned, flags=re.DOTALL)
    return m.group(0) if m else cleaned

# ——— Prompts ———————————————————————————————————————————

SYSTEM_PROMPT = (
    "You are the narrator of a choose-your-own-adventure game. "
    "Write vivid second-person prose (80–150 words per scene). "
    "Always answer with exactly one JSON object with keys: "
    "sceneDescription (string), imagePrompt (string, a short visual description "
    "of the scene for an illustrator, no text in the image), choices (array of "
    "2 to 4 short action strings), gameOver (boolean), gameOverMessage (string or null)."
)

INITIAL_PROMPT = (
    "Start a new adventure with the theme: {theme}.\n"
    "Describe the opening scene and offer the player their first choices. "
    "gameOver must be false."
)

NEXT_PROMPT = (
    "Story so far (oldest first):\n{history}\n\n"
    "Current scene:\n{current_scene}\n\n"
    "The player chooses: {choice}\n\n"
    "Continue the story from this choice. Keep continuity with the story so far. "
    "If the choice leads to the end of the adventure (death, victory, or another "
    "conclusion), set gameOver to true, put a closing line in gameOverMessage "
    "and leave choices empty."
)

IMAGE_STYLE = "digital painting, atmospheric lighting, highly detailed, cinematic composition"


def initial_messages(theme: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": INITIAL_PROMPT.format(theme=theme.strip())},
    ]


def next_messages(current_scene: str, choice: str, history: Sequence[str]) -> List[Dict[str, str]]:
    lines = "\n".join(f"{i}. {s}" for i, s in enumerate(history, start=1)) or "(nothing yet)"
    prompt = NEXT_PROMPT.format(history=lines, current_scene=current_scene, choice=choice)
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def image_prompt(prompt: str) -> str:
    return f"{prompt.strip()}, {IMAGE_STYLE}"
