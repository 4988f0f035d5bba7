"""Fleet configuration models."""

import string

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Characters that break unquoted shell interpolation or SQL string literals.
UNSAFE_SPECIAL_CHARACTERS = frozenset(" \t\n\"'\\$`/@;&|<>()*?!#~[]{}")

DEFAULT_REGION = "ap-south-1"


class AwsConfig(BaseModel):
    """AWS account and region used for the topology."""

    region: str = DEFAULT_REGION
    profile: str | None = None


class AppConfig(BaseModel):
    """The containerized web application run on every instance."""

    image: str = "wordpress:latest"
    container_name: str = "wordpress"
    port: int = Field(default=80, ge=1, le=65535)
    # Prepended to the secret keys to form container environment variable names.
    env_prefix: str = Field(default="WORDPRESS_", pattern=r"^[A-Z_][A-Z0-9_]*$")
    debug_environment: dict[str, str] = Field(
        default_factory=lambda: {
            "WORDPRESS_DEBUG": "1",
            "WORDPRESS_DEBUG_LOG": "/var/www/html/wp-content/debug.log",
        }
    )


class DatabaseConfig(BaseModel):
    """Managed database instance settings."""

    engine: str = "mysql"
    engine_version: str = "8.0"
    instance_class: str = "db.t3.micro"
    allocated_storage: int = Field(default=20, ge=20)
    db_name: str = "wordpress"
    username: str = "admin"
    port: int = Field(default=3306, ge=1, le=65535)
    skip_final_snapshot: bool = True


class PasswordPolicy(BaseModel):
    """Character rules for the generated database password."""

    length: int = Field(default=16, ge=12, le=128)
    upper: bool = True
    lower: bool = True
    numeric: bool = True
    special: bool = True
    override_special: str = "-_.+=:,%^"

    @field_validator("override_special")
    @classmethod
    def _only_safe_specials(cls, value: str) -> str:
        unsafe = sorted(set(value) & UNSAFE_SPECIAL_CHARACTERS)
        if unsafe:
            raise ValueError(f"special characters {unsafe!r} are not shell/SQL safe")
        return value

    @property
    def allowed_characters(self) -> frozenset[str]:
        """Return every character a generated password may contain."""
        allowed = ""
        if self.upper:
            allowed += string.ascii_uppercase
        if self.lower:
            allowed += string.ascii_lowercase
        if self.numeric:
            allowed += string.digits
        if self.special:
            allowed += self.override_special
        return frozenset(allowed)

    def violations(self, value: str) -> list[str]:
        """Describe how a password breaks this policy without echoing it."""
        problems: list[str] = []
        if len(value) < self.length:
            problems.append(f"length {len(value)} is below {self.length}")
        outside = sum(1 for char in value if char not in self.allowed_characters)
        if outside:
            problems.append(f"{outside} character(s) outside the allowed set")
        return problems


class FleetConfig(BaseModel):
    """Compute instances and autoscaling capacity."""

    instance_type: str = "t3.micro"
    ami_name_filter: str = "al2023-ami-2023.*-x86_64"
    ami_owner: str = "amazon"
    min_size: int = Field(default=1, ge=0)
    max_size: int = Field(default=3, ge=1)
    desired_capacity: int = Field(default=1, ge=0)
    health_check_grace_period: int = Field(default=300, ge=0)

    @model_validator(mode="after")
    def _capacity_in_bounds(self) -> "FleetConfig":
        if not self.min_size <= self.desired_capacity <= self.max_size:
            raise ValueError(
                "capacity must satisfy min_size <= desired_capacity <= max_size "
                f"(got {self.min_size}, {self.desired_capacity}, {self.max_size})"
            )
        return self


class HealthCheckConfig(BaseModel):
    """Target group health check settings."""

    path: str = "/license.txt"
    matcher: str = "200"
    interval: int = Field(default=30, ge=5, le=300)
    timeout: int = Field(default=5, ge=2, le=120)
    healthy_threshold: int = Field(default=2, ge=2, le=10)
    unhealthy_threshold: int = Field(default=2, ge=2, le=10)

    @field_validator("matcher")
    @classmethod
    def _matcher_lists_codes(cls, value: str) -> str:
        parse_status_matcher(value)
        return value

    @model_validator(mode="after")
    def _timeout_below_interval(self) -> "HealthCheckConfig":
        if self.timeout >= self.interval:
            raise ValueError(
                f"health check timeout ({self.timeout}s) must be shorter than "
                f"its interval ({self.interval}s)"
            )
        return self

    def accepts(self, status_code: int) -> bool:
        """Return whether a status code satisfies the matcher."""
        return status_code in parse_status_matcher(self.matcher)


def parse_status_matcher(matcher: str) -> set[int]:
    """Expand a target group matcher such as ``200,302`` or ``200-299``."""
    codes: set[int] = set()
    for part in matcher.split(","):
        low, separator, high = part.strip().partition("-")
        if not low.isdigit() or (separator and not high.isdigit()):
            raise ValueError(f"invalid status code matcher {matcher!r}")
        first, last = int(low), int(high or low)
        if not 100 <= first <= last <= 599:
            raise ValueError(f"invalid status code range {part.strip()!r} in {matcher!r}")
        codes.update(range(first, last + 1))
    return codes


class SecretConfig(BaseModel):
    """Secrets Manager record holding the database credentials."""

    name_suffix: str = "db-credentials"
    # 0 deletes the secret at destroy time, freeing its name for the next apply.
    recovery_window_in_days: int = Field(default=0, ge=0, le=30)


class BootstrapConfig(BaseModel):
    """Settings baked into the instance bootstrap script."""

    # Kept separate from aws.region; a mismatch is reported, not corrected.
    region: str = DEFAULT_REGION


class TerraformConfig(BaseModel):
    """Provider constraints written into the engine configuration."""

    aws_provider_version: str = ">= 5.0"
    random_provider_version: str = ">= 3.5"


class WebfleetConfig(BaseModel):
    """Complete fleet configuration."""

    model_config = ConfigDict(extra="ignore")

    project_name: str = Field(
        default="wordpress",
        min_length=2,
        max_length=21,
        pattern=r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$",
    )
    aws: AwsConfig = Field(default_factory=AwsConfig)
    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    password: PasswordPolicy = Field(default_factory=PasswordPolicy)
    fleet: FleetConfig = Field(default_factory=FleetConfig)
    health_check: HealthCheckConfig = Field(default_factory=HealthCheckConfig)
    secret: SecretConfig = Field(default_factory=SecretConfig)
    bootstrap: BootstrapConfig = Field(default_factory=BootstrapConfig)
    terraform: TerraformConfig = Field(default_factory=TerraformConfig)

    @property
    def secret_name(self) -> str:
        """Return the Secrets Manager secret name."""
        return f"{self.project_name}/{self.secret.name_suffix}"

    def resource_name(self, suffix: str) -> str:
        """Return a provider-visible name for one of the fleet's resources."""
        return f"{self.project_name}-{suffix}"
