"""Engine configuration."""
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    """Engine configuration loaded from environment variables."""
    
    # Table limits
    min_players: int = int(os.getenv("MIN_PLAYERS", "2"))
    max_players: int = int(os.getenv("MAX_PLAYERS", "10"))
    
    # Stakes
    minimum_bet: int = int(os.getenv("MINIMUM_BET", "5"))
    small_blind: int = int(os.getenv("SMALL_BLIND", "5"))
    big_blind: int = int(os.getenv("BIG_BLIND", "10"))
    
    # Turn timer (0 disables it)
    turn_time_seconds: float = float(os.getenv("TURN_TIME_SECONDS", "15"))
    
    # Event bus
    max_listeners: int = int(os.getenv("MAX_LISTENERS", "100"))
    
    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


config = Config()
