"""In-memory emote registry fed by Twitch, 7TV, FFZ and BTTV."""

__version__ = "0.1.0"
