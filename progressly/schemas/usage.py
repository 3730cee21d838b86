from pydantic import BaseModel


class UsageCategory(BaseModel):
    used: int
    limit: int  # -1 means unlimited
    unlimited: bool


class UsageResponse(BaseModel):
    formatSearches: UsageCategory
    optimizations: UsageCategory
    analyses: UsageCategory
    plan: str
    currentMonth: int
    currentYear: int
    weekStart: str


class AnalysisCheckResponse(BaseModel):
    canAnalyze: bool
    remaining: int
    message: str
    plan: str
