"""Configuration schema; validates lca.yml."""

from pydantic import BaseModel, field_validator, model_validator

from lca.schemas.learning import EducationalLevel, PreferredStyle


class LearningDefaults(BaseModel):
    """Preferences used when the store has none for the user."""

    educational_level: EducationalLevel = "high-school"
    preferred_style: PreferredStyle = "detailed"


class ABTestModel(BaseModel):
    """One model entry in an A/B test run."""

    model_id: str
    model_name: str = ""
    custom_prompt: str = ""
    temperature: float = 0.7


class ABTestDefaults(BaseModel):
    """Default models and criteria for ``lca abtest``."""

    models: list[ABTestModel] = [
        ABTestModel(model_id="gpt-4o", model_name="GPT-4o"),
        ABTestModel(model_id="gpt-4o-mini", model_name="GPT-4o mini"),
    ]
    criteria: list[str] = ["accuracy", "creativity", "clarity", "completeness"]

    @field_validator("models")
    @classmethod
    def check_two_models(cls, v: list[ABTestModel]) -> list[ABTestModel]:
        if len(v) < 2:
            raise ValueError("ab_test.models needs at least two models")
        return v


class AppConfig(BaseModel):
    """Top-level configuration loaded from lca.yml.

    ``user_id`` is required; every stored row is scoped to it. Credentials
    left empty here are resolved from the environment at connection time.
    """

    user_id: str

    # OpenAI
    model: str = "gpt-4o-mini"
    openai_api_key: str = ""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    defaults: LearningDefaults = LearningDefaults()
    ab_test: ABTestDefaults = ABTestDefaults()

    # Output
    output_directory: str = "./output"

    @model_validator(mode="after")
    def check_has_user(self) -> "AppConfig":
        if not self.user_id.strip():
            raise ValueError("'user_id' must be a non-empty string")
        return self
