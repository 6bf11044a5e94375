"""
Story Library - The bundled "Awakening" story.

A short branching tale: wake in a moonlit forest, follow the light or the
dark, reach the temple and make the final choice. Three endings.
"""

from __future__ import annotations

from typing import Any

from storygraph.story.store import SceneGraphStore
from storygraph.story.types import Scene


def _line(speaker: str, text: str, emotion: str = "neutral") -> dict[str, str]:
    return {"speaker": speaker, "text": text, "emotion": emotion}


def _choice(text: str, next_scene: str, impact: str) -> dict[str, str]:
    return {"text": text, "nextScene": next_scene, "impact": impact}


AWAKENING: dict[str, dict[str, Any]] = {
    "start": {
        "title": "Awakening",
        "description": "You wake up in a mysterious forest, moonlight filtering through ancient trees.",
        "dialogue": [
            _line("Narrator", "The world comes into focus slowly. You're lying on soft moss, surrounded by towering trees that seem to whisper secrets."),
            _line("You", "Where... where am I?", "worried"),
            _line("Narrator", "In the distance, you notice two paths: one glowing with a soft, inviting light, the other shrouded in darkness."),
        ],
        "choices": [
            _choice("Follow the light", "lightPath", "positive"),
            _choice("Explore the darkness", "darkPath", "negative"),
        ],
        "environment": "forest",
        "cameraPosition": [0, 5, 10],
        "cameraTarget": [0, 0, 0],
    },
    "lightPath": {
        "title": "The Clearing",
        "description": "The light leads you to a beautiful clearing where a stranger awaits.",
        "dialogue": [
            _line("Narrator", "The path opens into a moonlit clearing. A figure stands at its center, their back turned to you."),
            _line("Stranger", "I've been waiting for you. The forest has been calling out, seeking someone brave enough to answer."),
            _line("Stranger", "There's a temple beyond the cliffs. Inside lies a choice that will define not just your fate, but the fate of all who wander here.", "hopeful"),
            _line("You", "Why me? What makes me special?", "worried"),
            _line("Stranger", "That's for you to discover. But know this: I can guide you there, or you can venture alone. The choice, as always, is yours."),
        ],
        "choices": [
            _choice("Accept their guidance", "guidedPath", "positive"),
            _choice("Continue alone", "alonePath", "neutral"),
        ],
        "environment": "clearing",
        "cameraPosition": [5, 4, 8],
        "cameraTarget": [0, 1, 0],
    },
    "darkPath": {
        "title": "The Cave",
        "description": "Darkness envelops you as you enter a mysterious cave.",
        "dialogue": [
            _line("Narrator", "The darkness is not empty. It breathes around you, alive with whispers and echoes of forgotten voices."),
            _line("Voice", "Turn back... while you still can...", "worried"),
            _line("You", "I'm not afraid."),
            _line("Narrator", "The cave opens up. Before you lies a chasm, and across it, a bridge of light materializes. But the path forward demands courage."),
        ],
        "choices": [
            _choice("Cross the bridge of light", "bridgeCrossing", "positive"),
            _choice("Search for another way", "alternativePath", "neutral"),
        ],
        "environment": "cave",
        "cameraPosition": [0, 3, 12],
        "cameraTarget": [0, 0, -5],
    },
    "guidedPath": {
        "title": "The Guided Journey",
        "description": "The stranger leads you through the forest with wisdom and care.",
        "dialogue": [
            _line("Stranger", "This forest has seen many travelers, but few who listen to their heart.", "hopeful"),
            _line("Narrator", "You walk together in comfortable silence. The path ahead reveals a magnificent cliff overlooking an endless sea of stars."),
            _line("Stranger", "At the temple ahead, you'll face the ultimate choice. Remember: true strength isn't in what you take, but in what you're willing to give."),
        ],
        "choices": [
            _choice("Approach the temple", "templeChoice", "positive"),
        ],
        "environment": "cliff",
        "cameraPosition": [8, 6, 10],
        "cameraTarget": [0, 2, -5],
    },
    "alonePath": {
        "title": "The Solitary Way",
        "description": "You venture forward on your own, trusting your instincts.",
        "dialogue": [
            _line("Narrator", "The path is harder alone, but you feel a growing confidence with each step."),
            _line("You", "I can do this. I have to.", "hopeful"),
            _line("Narrator", "The temple emerges from the mist ahead, ancient and imposing. You've made it this far on your own strength."),
        ],
        "choices": [
            _choice("Enter the temple", "templeChoice", "neutral"),
        ],
        "environment": "cliff",
        "cameraPosition": [6, 5, 12],
        "cameraTarget": [0, 1, -5],
    },
    "bridgeCrossing": {
        "title": "The Bridge of Light",
        "description": "You step onto the ethereal bridge, each step a leap of faith.",
        "dialogue": [
            _line("Narrator", "The bridge holds firm beneath your feet, rewarding your courage with solid ground.", "hopeful"),
            _line("Voice", "You have proven yourself worthy. The temple awaits.", "hopeful"),
        ],
        "choices": [
            _choice("Continue to the temple", "templeChoice", "positive"),
        ],
        "environment": "cave",
        "cameraPosition": [0, 4, 10],
        "cameraTarget": [0, 0, -10],
    },
    "alternativePath": {
        "title": "The Winding Path",
        "description": "You find a narrow ledge around the chasm.",
        "dialogue": [
            _line("Narrator", "The path is treacherous, but your caution serves you well. Sometimes the longer road is the wiser choice."),
        ],
        "choices": [
            _choice("Proceed to the temple", "templeChoice", "neutral"),
        ],
        "environment": "cave",
        "cameraPosition": [-5, 4, 8],
        "cameraTarget": [0, 0, -5],
    },
    "templeChoice": {
        "title": "The Final Choice",
        "description": "Inside the temple, two pedestals stand before you, each holding an ancient artifact.",
        "dialogue": [
            _line("Narrator", "The temple's heart reveals itself. Two artifacts pulse with power: one radiates light, promising freedom and new beginnings. The other glows with warmth, offering to heal and restore all who suffer."),
            _line("Ancient Voice", "Choose wisely, traveler. One will free you from this realm forever. The other will grant you the power to save others, but bind you to this place as its eternal guardian."),
            _line("You", "This is... this is an impossible choice.", "worried"),
            _line("Ancient Voice", "The most important choices always are."),
        ],
        "choices": [
            _choice("Take the Light - Claim your freedom", "endingFreedom", "neutral"),
            _choice("Take the Warmth - Become the guardian", "endingGuardian", "positive"),
            _choice("Refuse both - Find your own way", "endingNeutral", "neutral"),
        ],
        "environment": "temple",
        "cameraPosition": [0, 5, 15],
        "cameraTarget": [0, 2, 0],
    },
    "endingFreedom": {
        "title": "The Path to Freedom",
        "description": "You chose to claim your freedom.",
        "dialogue": [
            _line("Narrator", "As your hand closes around the light, the temple dissolves. You find yourself standing on a hill at dawn, the forest far behind you.", "hopeful"),
            _line("You", "I'm... I'm free.", "happy"),
            _line("Narrator", "The world stretches before you, full of possibility. Your journey in the forest is over, but your story has only just begun.", "hopeful"),
            _line("Narrator", "Sometimes, choosing yourself isn't selfishness. It's survival. And survival is its own kind of courage."),
        ],
        "environment": "sunrise",
        "cameraPosition": [10, 8, 15],
        "cameraTarget": [0, 0, -10],
        "isEnding": True,
        "endingType": "neutral",
    },
    "endingGuardian": {
        "title": "The Guardian's Oath",
        "description": "You chose to become the guardian.",
        "dialogue": [
            _line("Narrator", "As you grasp the warm artifact, power flows through you. The temple comes alive, responding to your presence.", "hopeful"),
            _line("Ancient Voice", "You have chosen to carry the burden of compassion. From this day forward, you are the guardian of lost souls."),
            _line("You", "I accept this responsibility. No one else should feel lost and alone as I did.", "hopeful"),
            _line("Narrator", "The forest transforms around you, becoming a sanctuary. You feel the presence of every wanderer who will need your guidance. Your freedom is traded, but your purpose is eternal.", "hopeful"),
            _line("Narrator", "In choosing to stay, you became exactly what the world needed. A light in the darkness. A guide for the lost.", "hopeful"),
        ],
        "environment": "temple",
        "cameraPosition": [0, 10, 20],
        "cameraTarget": [0, 0, 0],
        "isEnding": True,
        "endingType": "good",
    },
    "endingNeutral": {
        "title": "The Third Path",
        "description": "You refused to be bound by the temple's choices.",
        "dialogue": [
            _line("You", "No. I won't be forced into a choice designed by others."),
            _line("Ancient Voice", "Interesting... In all the ages, none have refused both."),
            _line("Narrator", "The temple begins to crumble, but not in anger. In respect. The artifacts dissolve, their power returning to the earth."),
            _line("Ancient Voice", "Perhaps the greatest wisdom is knowing that some choices should never have been offered at all. You are free to forge your own path.", "hopeful"),
            _line("Narrator", "As the temple fades, you find yourself back in the forest clearing. But this time, you understand: the journey was never about the destination.", "hopeful"),
            _line("Narrator", "You walk forward, neither guardian nor wanderer, but something entirely your own. And that, perhaps, is the truest freedom of all.", "hopeful"),
        ],
        "environment": "clearing",
        "cameraPosition": [0, 6, 12],
        "cameraTarget": [0, 0, 0],
        "isEnding": True,
        "endingType": "good",
    },
}

ENTRY_SCENE = "start"


def default_story() -> SceneGraphStore:
    """Build a validated store holding the bundled story."""
    scenes = {
        scene_id: Scene.from_dict(data, scene_id=scene_id)
        for scene_id, data in AWAKENING.items()
    }
    return SceneGraphStore(scenes, entry=ENTRY_SCENE)


__all__ = ["AWAKENING", "ENTRY_SCENE", "default_story"]
