"""VarSwitch - Claude 자격 증명 프로필 전환 서비스"""

__version__ = "0.1.0"
