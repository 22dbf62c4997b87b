"""Models for run configuration loaded from <environment>.yaml files."""

from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from ui_harness.models.base import Model

BrowserKind = Literal["chromium", "firefox", "webkit"]
CapturePolicy = Literal["terminal", "every_attempt"]

_HTTP_URL = TypeAdapter(AnyHttpUrl)


def check_http_url(value: str) -> str:
    """Accept only absolute http(s) URLs, returned as written."""
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError as e:
        raise ValueError(f"not a valid http(s) URL: {value!r}") from e
    return value


HttpUrlString = Annotated[str, AfterValidator(check_http_url)]


class RetryPolicy(Model):
    """How often and how patiently a failed test unit is re-attempted."""

    enabled: bool = Field(default=False, description="Whether retries happen")
    max_attempts: int = Field(
        default=0, ge=0, description="Retries allowed after the first attempt"
    )
    delay_ms: int = Field(default=0, ge=0, description="Pause before each retry")


class ScreenshotSettings(Model):
    """Failure screenshot behaviour."""

    take_on_failure: bool = True
    full_page: bool = True
    capture_policy: CapturePolicy = "terminal"
    directory: str | None = None


class RunConfiguration(Model):
    """Immutable, process-wide settings for a test run."""

    environment_name: str
    browser_kind: BrowserKind = "chromium"
    headless: bool = True
    slow_mo_ms: int = Field(default=0, ge=0)
    default_timeout_ms: int = Field(default=30000, gt=0)
    base_url: HttpUrlString | None = None
    parallel: bool = False
    worker_count: int = Field(default=1, ge=1)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    screenshot: ScreenshotSettings = Field(default_factory=ScreenshotSettings)

    @property
    def effective_worker_count(self) -> int:
        """Number of worker threads the run actually uses."""
        return self.worker_count if self.parallel else 1


class EnvironmentSection(Model):
    """The `environment` block of a configuration file."""

    name: str | None = None
    base_url: str | None = Field(default=None, alias="baseUrl")

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return check_http_url(value.strip())


class BrowserSection(Model):
    """The `browser` block of a configuration file."""

    type: BrowserKind = "chromium"
    headless: bool = True
    slow_mo: int = Field(default=0, ge=0, alias="slowMo")
    timeout: int = Field(default=30000, gt=0)

    @field_validator("type", mode="before")
    @classmethod
    def _lowercase_type(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value


class TestExecutionSection(Model):
    """The `testExecution` block of a configuration file."""

    __test__ = False

    parallel: bool = False
    thread_count: int = Field(default=1, ge=1, alias="threadCount")


class RetrySection(Model):
    """The `retry` block of a configuration file."""

    enabled: bool = False
    max_retries: int = Field(default=0, ge=0, alias="maxRetries")
    delay_between_retries: int = Field(default=0, ge=0, alias="delayBetweenRetries")


class ScreenshotSection(Model):
    """The `screenshot` block of a configuration file."""

    take_on_failure: bool = Field(default=True, alias="takeOnFailure")
    full_page: bool = Field(default=True, alias="fullPage")
    capture_policy: CapturePolicy = Field(default="terminal", alias="capturePolicy")
    directory: str | None = None


class ConfigDocument(Model):
    """Complete configuration document as written in YAML."""

    environment: EnvironmentSection = Field(default_factory=EnvironmentSection)
    browser: BrowserSection = Field(default_factory=BrowserSection)
    test_execution: TestExecutionSection = Field(
        default_factory=TestExecutionSection, alias="testExecution"
    )
    retry: RetrySection = Field(default_factory=RetrySection)
    screenshot: ScreenshotSection = Field(default_factory=ScreenshotSection)

    def to_run_configuration(self, environment: str) -> RunConfiguration:
        """Flatten the document into a RunConfiguration.

        The environment name declared in the file wins over the name the file
        was selected by.
        """
        return RunConfiguration(
            environment_name=self.environment.name or environment,
            browser_kind=self.browser.type,
            headless=self.browser.headless,
            slow_mo_ms=self.browser.slow_mo,
            default_timeout_ms=self.browser.timeout,
            base_url=self.environment.base_url,
            parallel=self.test_execution.parallel,
            worker_count=self.test_execution.thread_count,
            retry=RetryPolicy(
                enabled=self.retry.enabled,
                max_attempts=self.retry.max_retries,
                delay_ms=self.retry.delay_between_retries,
            ),
            screenshot=ScreenshotSettings(
                take_on_failure=self.screenshot.take_on_failure,
                full_page=self.screenshot.full_page,
                capture_policy=self.screenshot.capture_policy,
                directory=self.screenshot.directory,
            ),
        )
