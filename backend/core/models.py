from typing import TypedDict, Optional, List, Literal


class Quote(TypedDict, total=False):
    text: str
    participant: str
    context: Optional[str]


class Theme(TypedDict):
    title: str
    confidence: float          # 0.0 - 1.0
    mentions: int
    description: str
    quotes: List[Quote]


class Position(TypedDict):
    stance: str
    supporter: str             # speaker name
    reasoning: str
    quote: Quote


class Disagreement(TypedDict):
    title: str
    intensity: Literal["High", "Medium", "Low"]
    participants: List[str]
    description: str
    positions: List[Position]


class AnalysisResult(TypedDict, total=False):
    # Present on every result
    keyThemes: List[Theme]
    disagreements: List[Disagreement]
    transcriptCountAtAnalysis: int
    createdAt: str

    # Only set once persisted against a project
    id: str
    projectId: str


class TranscriptInput(TypedDict):
    filename: str
    content: str


class ChatExchange(TypedDict):
    id: str
    project_id: str
    user_message: str
    ai_response: str
    response_quotes: List[Quote]
    created_at: str
    session_id: Optional[str]
