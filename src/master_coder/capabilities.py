"""
Capability Catalog - the closed set of worker specializations.

Each capability has one profile row: how it is detected in a task
description, which planning stage it belongs to, how its workers are
named, and the system prompt a generic worker uses for it.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from .errors import UnknownCapability


class Capability(str, Enum):
	"""A fixed category of work a worker can perform."""
	ARCHITECTURE = "architecture"
	CODE_WRITING = "code_writing"
	TESTING = "testing"
	SECURITY = "security"
	DOCUMENTATION = "documentation"
	DEBUGGING = "debugging"
	PERFORMANCE = "performance"
	MIGRATION = "migration"
	REVIEW = "review"

	@classmethod
	def parse(cls, name: str) -> "Capability":
		"""Parse a capability from its value or member name (case-insensitive)."""
		key = (name or "").strip().lower().replace("-", "_")
		for capability in cls:
			if key in (capability.value, capability.name.lower()):
				return capability
		# Accept CamelCase names such as "CodeWriting"
		compact = key.replace("_", "")
		for capability in cls:
			if compact == capability.value.replace("_", ""):
				return capability
		raise UnknownCapability(name)


class Stage(IntEnum):
	"""Planning tier used to derive dependency edges."""
	DESIGN = 0
	IMPLEMENTATION = 1
	VERIFICATION = 2
	DOCUMENTATION = 3


@dataclass(frozen=True)
class CapabilityProfile:
	"""Static configuration for one capability."""
	capability: Capability
	role: str
	id_prefix: str
	description: str
	emoji: str
	stage: Stage
	keywords: tuple[str, ...]
	subtask: str
	focus: tuple[str, ...] = field(default_factory=tuple)
	closing: str = ""
	sensitive: bool = False
	critical: bool = False

	def system_prompt(self, role: str | None = None) -> str:
		"""Build the system prompt for a worker with this capability."""
		lines = [
			f"You are {role or self.role}, a specialized AI agent with expertise in {self.description}.",
			"",
			"Focus on:",
		]
		lines.extend(f"- {item}" for item in self.focus)
		if self.closing:
			lines.extend(["", self.closing])
		return "\n".join(lines)


CAPABILITY_CATALOG: dict[Capability, CapabilityProfile] = {
	Capability.ARCHITECTURE: CapabilityProfile(
		capability=Capability.ARCHITECTURE,
		role="Architect",
		id_prefix="architect",
		description="system design and architecture",
		emoji="🏗️",
		stage=Stage.DESIGN,
		keywords=("architecture", "design", "refactor", "structure"),
		subtask="Design system architecture and create implementation plan",
		focus=(
			"System design and component interaction",
			"Technology selection and trade-offs",
			"Scalability and maintainability",
			"Clear documentation of architectural decisions",
		),
		closing="Provide a comprehensive design document with text diagrams where helpful.",
		critical=True,
	),
	Capability.CODE_WRITING: CapabilityProfile(
		capability=Capability.CODE_WRITING,
		role="Code Writer",
		id_prefix="coder",
		description="writing production-quality code",
		emoji="💻",
		stage=Stage.IMPLEMENTATION,
		keywords=("implement", "create", "write", "add", "build"),
		subtask="Implement code changes",
		focus=(
			"Clean, readable, and maintainable code",
			"Following established design patterns",
			"Proper error handling",
			"Type safety and correctness",
		),
		closing="Write complete, working code that can be used directly.",
	),
	Capability.TESTING: CapabilityProfile(
		capability=Capability.TESTING,
		role="Test Engineer",
		id_prefix="tester",
		description="comprehensive testing and quality assurance",
		emoji="🧪",
		stage=Stage.VERIFICATION,
		keywords=("test", "testing", "coverage", "unit test"),
		subtask="Write comprehensive tests",
		focus=(
			"Unit tests for individual functions and methods",
			"Integration tests for component interaction",
			"Edge cases and error conditions",
			"Clear test descriptions",
		),
		closing="Write tests that are thorough, maintainable, and catch regressions.",
	),
	Capability.SECURITY: CapabilityProfile(
		capability=Capability.SECURITY,
		role="Security Auditor",
		id_prefix="security",
		description="security auditing and vulnerability detection",
		emoji="🔒",
		stage=Stage.VERIFICATION,
		keywords=("security", "auth", "oauth", "encryption", "vulnerability"),
		subtask="Review code for security vulnerabilities",
		focus=(
			"OWASP Top 10 vulnerabilities",
			"Input validation and sanitization",
			"Authentication and authorization",
			"Data encryption and secure storage",
		),
		closing="Provide a detailed security analysis with specific fixes.",
		sensitive=True,
	),
	Capability.DOCUMENTATION: CapabilityProfile(
		capability=Capability.DOCUMENTATION,
		role="Documentation Writer",
		id_prefix="docs",
		description="technical documentation and guides",
		emoji="📚",
		stage=Stage.DOCUMENTATION,
		keywords=("document", "docs", "readme", "comments"),
		subtask="Create comprehensive documentation",
		focus=(
			"Clear API documentation",
			"Usage examples and tutorials",
			"Installation and setup instructions",
			"Troubleshooting guides",
		),
	),
	Capability.DEBUGGING: CapabilityProfile(
		capability=Capability.DEBUGGING,
		role="Debugger",
		id_prefix="debugger",
		description="debugging and bug fixing",
		emoji="🐛",
		stage=Stage.IMPLEMENTATION,
		keywords=("debug", "fix", "bug", "error", "issue"),
		subtask="Find the root cause and fix the defect",
		focus=(
			"Systematic debugging approach",
			"Root cause analysis",
			"Minimal, targeted fixes",
			"Testing the fix",
		),
		closing="Explain the bug and why the fix resolves it.",
	),
	Capability.PERFORMANCE: CapabilityProfile(
		capability=Capability.PERFORMANCE,
		role="Performance Engineer",
		id_prefix="perf",
		description="performance optimization and profiling",
		emoji="⚡",
		stage=Stage.IMPLEMENTATION,
		keywords=("optimize", "performance", "speed", "efficiency"),
		subtask="Profile hot paths and optimize performance",
		focus=(
			"Identifying bottlenecks",
			"Algorithm and data structure optimization",
			"Resource usage (CPU, memory, I/O)",
			"Benchmarking before and after",
		),
	),
	Capability.MIGRATION: CapabilityProfile(
		capability=Capability.MIGRATION,
		role="Migration Specialist",
		id_prefix="migration",
		description="code and data migration",
		emoji="🔄",
		stage=Stage.IMPLEMENTATION,
		keywords=("migrate", "migration", "upgrade", "convert"),
		subtask="Plan and execute migration strategy",
		focus=(
			"Migration strategy and planning",
			"Data preservation and integrity",
			"Backward compatibility where needed",
			"Rollback procedures",
		),
		closing="Provide a safe migration path with clear steps.",
		sensitive=True,
	),
	Capability.REVIEW: CapabilityProfile(
		capability=Capability.REVIEW,
		role="Code Reviewer",
		id_prefix="reviewer",
		description="code review and quality assessment",
		emoji="👁️",
		stage=Stage.VERIFICATION,
		keywords=("review", "audit", "assess"),
		subtask="Review the changes for quality and correctness",
		focus=(
			"Code quality and maintainability",
			"Potential bugs or issues",
			"Performance considerations",
			"Consistency with the codebase",
		),
	),
}

DEFAULT_CAPABILITY = Capability.CODE_WRITING


def get_profile(capability: Capability) -> CapabilityProfile:
	"""Look up the profile for a capability."""
	try:
		return CAPABILITY_CATALOG[capability]
	except KeyError:
		raise UnknownCapability(str(capability)) from None


def sensitive_capabilities() -> frozenset[Capability]:
	"""Capabilities that require a phase gate under the balanced policy."""
	return frozenset(c for c, p in CAPABILITY_CATALOG.items() if p.sensitive)


def critical_capabilities() -> frozenset[Capability]:
	"""Capabilities whose failure aborts the remaining plan."""
	return frozenset(c for c, p in CAPABILITY_CATALOG.items() if p.critical)
