"""Prompt templates sent to MiniMax, plus the canned fallback song."""

IMAGE_PROMPT = "{theme}, anime style, beautiful vibrant colors, high quality"

LYRICS_PROMPT = (
    "Anime opening song about: {theme}. Write a dramatic, emotional J-pop style "
    "song with verse, chorus, bridge structure."
)

MUSIC_PROMPT = (
    "Anime J-Pop opening, {theme}, emotional, dramatic, high energy, catchy melody, "
    "with drums, bass, guitar, synth"
)

VIDEO_PROMPT = (
    "Anime style video, {theme}, dynamic camera movement, dramatic lighting, "
    "anime aesthetic, smooth motion, cinematic"
)

THEME_SUGGESTIONS = [
    "Epic battle scene with dramatic orchestra",
    "Peaceful slice of life in a cherry blossom garden",
    "Intense sports championship",
    "Mysterious magical girl transformation",
    "Heartwarming reunion after long separation",
    "Futuristic cyberpunk city chase",
]

DEFAULT_LYRICS = """\
[Intro]
(Oh~)
This is our story now
Let's begin tonight

[Verse 1]
In the darkness we stand together
Forever bound by destiny
The stars guide our way tonight
As we chase our dreams

[Pre-Chorus]
Feel the fire in our hearts
Nothing can tear us apart

[Chorus]
We are unstoppable
Together we shine so bright
With the power of our souls
We'll keep fighting through the night

[Verse 2]
Memories fade but we'll remember
Every moment that we've shared
The journey continues on
With hope we will persevere

[Bridge]
(One more time)
We rise again
(One more time)
Until the end

[Chorus]
We are unstoppable
Together we shine so bright
With the power of our souls
We'll keep fighting through the night

[Outro]
(This is our story...)
Our story begins now..."""
