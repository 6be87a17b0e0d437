# scope_solar/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser

from scope_solar.errors import ConfigError


@dataclass
class PredictionConfig:
    enabled: bool = True
    base_url: str = "https://api.scope-app.com/v1"
    api_key: str | None = None
    model_version: str = "v1.0"
    timeout: float = 30.0
    retries: int = 2


@dataclass
class PanelConfig:
    wattage_w: float = 400.0
    area_m2: float = 2.0
    unit_cost: float = 25000.0
    installation_multiplier: float = 1.3
    system_efficiency: float = 0.85


@dataclass
class FinancialConfig:
    electricity_rate: float = 6.5
    subsidy_rate: float = 0.30
    discount_rate: float = 0.08
    lifespan_years: int = 25
    degradation_rate: float = 0.005
    currency: str = "INR"


@dataclass
class EnvironmentalConfig:
    co2_per_kwh: float = 0.82
    co2_per_tree_per_year: float = 22.0
    distance_per_kwh: float = 3.4
    water_saved_per_kwh: float = 0.5
    horizon_years: int = 25


@dataclass
class ValidationConfig:
    max_area_m2: float = 100000.0


@dataclass
class HistoryConfig:
    weather_capacity: int = 100
    prediction_capacity: int = 50


@dataclass
class WeatherConfig:
    enabled: bool = False
    provider: str = "open-meteo"
    base_url: str = "https://archive-api.open-meteo.com/v1/archive"
    timeout: float = 30.0
    history_days: int = 90


@dataclass
class IrradianceConfig:
    enabled: bool = False
    base_url: str = "https://power.larc.nasa.gov/api/temporal/daily/point"
    timeout: float = 30.0
    year: int = 2023


@dataclass
class StateConfig:
    path: str | None = None
    persist: bool = False


@dataclass
class RetentionConfig:
    record_days: int = 365
    vacuum_after_prune: bool = True


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    panel: PanelConfig = field(default_factory=PanelConfig)
    financial: FinancialConfig = field(default_factory=FinancialConfig)
    environmental: EnvironmentalConfig = field(default_factory=EnvironmentalConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    weather: WeatherConfig = field(default_factory=WeatherConfig)
    irradiance: IrradianceConfig = field(default_factory=IrradianceConfig)
    state: StateConfig = field(default_factory=StateConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)
        try:
            return cfg._build()
        except ValueError as exc:
            raise ConfigError(f"Invalid value in {cfg.path}: {exc}") from exc

    # ------------------------------------------------------------------
    def _build(self) -> AppConfig:
        p = self.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        def _maybe_str(raw: str | None) -> str | None:
            if raw is None:
                return None
            raw = raw.strip()
            return raw or None

        def _section(name: str):
            return p[name] if name in p else {}

        def _read(sec, key: str, kwargs: dict, convert, attr: str | None = None) -> None:
            if key in sec:
                kwargs[attr or key] = convert(sec[key])

        # --- Prediction ---
        prediction_kwargs = {}
        pred_sec = _section("prediction")
        _read(pred_sec, "enabled", prediction_kwargs, _as_bool)
        _read(pred_sec, "base_url", prediction_kwargs, lambda v: v.strip().rstrip("/"))
        _read(pred_sec, "api_key", prediction_kwargs, _maybe_str)
        _read(pred_sec, "model_version", prediction_kwargs, str.strip)
        _read(pred_sec, "timeout", prediction_kwargs, float)
        _read(pred_sec, "retries", prediction_kwargs, int)
        prediction_cfg = PredictionConfig(**prediction_kwargs)
        if prediction_cfg.timeout <= 0:
            raise ValueError("prediction.timeout must be positive")
        if prediction_cfg.retries < 0:
            raise ValueError("prediction.retries must not be negative")

        # --- Panel ---
        panel_kwargs = {}
        panel_sec = _section("panel")
        _read(panel_sec, "wattage_w", panel_kwargs, float)
        _read(panel_sec, "area_m2", panel_kwargs, float)
        _read(panel_sec, "unit_cost", panel_kwargs, float)
        _read(panel_sec, "installation_multiplier", panel_kwargs, float)
        _read(panel_sec, "system_efficiency", panel_kwargs, float)
        panel_cfg = PanelConfig(**panel_kwargs)
        if panel_cfg.area_m2 <= 0:
            raise ValueError("panel.area_m2 must be positive")

        # --- Financial ---
        financial_kwargs = {}
        fin_sec = _section("financial")
        _read(fin_sec, "electricity_rate", financial_kwargs, float)
        _read(fin_sec, "subsidy_rate", financial_kwargs, float)
        _read(fin_sec, "discount_rate", financial_kwargs, float)
        _read(fin_sec, "lifespan_years", financial_kwargs, int)
        _read(fin_sec, "degradation_rate", financial_kwargs, float)
        _read(fin_sec, "currency", financial_kwargs, lambda v: v.strip().upper())
        financial_cfg = FinancialConfig(**financial_kwargs)
        if not 0.0 <= financial_cfg.subsidy_rate <= 1.0:
            raise ValueError("financial.subsidy_rate must be between 0 and 1")

        # --- Environmental ---
        environmental_kwargs = {}
        env_sec = _section("environmental")
        _read(env_sec, "co2_per_kwh", environmental_kwargs, float)
        _read(env_sec, "co2_per_tree_per_year", environmental_kwargs, float)
        _read(env_sec, "distance_per_kwh", environmental_kwargs, float)
        _read(env_sec, "water_saved_per_kwh", environmental_kwargs, float)
        _read(env_sec, "horizon_years", environmental_kwargs, int)
        environmental_cfg = EnvironmentalConfig(**environmental_kwargs)

        # --- Validation ---
        validation_kwargs = {}
        _read(_section("validation"), "max_area_m2", validation_kwargs, float)
        validation_cfg = ValidationConfig(**validation_kwargs)

        # --- History ---
        history_kwargs = {}
        hist_sec = _section("history")
        _read(hist_sec, "weather_capacity", history_kwargs, int)
        _read(hist_sec, "prediction_capacity", history_kwargs, int)
        history_cfg = HistoryConfig(**history_kwargs)
        if history_cfg.weather_capacity < 1 or history_cfg.prediction_capacity < 1:
            raise ValueError("history capacities must be at least 1")

        # --- Weather ---
        weather_kwargs = {}
        weather_sec = _section("weather")
        _read(weather_sec, "enabled", weather_kwargs, _as_bool)
        _read(weather_sec, "provider", weather_kwargs, str.strip)
        _read(weather_sec, "base_url", weather_kwargs, str.strip)
        _read(weather_sec, "timeout", weather_kwargs, float)
        _read(weather_sec, "history_days", weather_kwargs, int)
        weather_cfg = WeatherConfig(**weather_kwargs)

        # --- Irradiance ---
        irradiance_kwargs = {}
        irr_sec = _section("irradiance")
        _read(irr_sec, "enabled", irradiance_kwargs, _as_bool)
        _read(irr_sec, "base_url", irradiance_kwargs, str.strip)
        _read(irr_sec, "timeout", irradiance_kwargs, float)
        _read(irr_sec, "year", irradiance_kwargs, int)
        irradiance_cfg = IrradianceConfig(**irradiance_kwargs)

        # --- State ---
        state_kwargs = {}
        state_sec = _section("state")
        _read(state_sec, "path", state_kwargs, _maybe_str)
        _read(state_sec, "persist", state_kwargs, _as_bool)
        state_cfg = StateConfig(**state_kwargs)

        retention_sec = _section("retention")
        retention_cfg = RetentionConfig(
            record_days=int(retention_sec.get("record_days", 365) or 365),
            vacuum_after_prune=(retention_sec.get("vacuum_after_prune", "true").strip().lower() == "true")
            if retention_sec
            else True,
        )

        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            prediction=prediction_cfg,
            panel=panel_cfg,
            financial=financial_cfg,
            environmental=environmental_cfg,
            validation=validation_cfg,
            history=history_cfg,
            weather=weather_cfg,
            irradiance=irradiance_cfg,
            state=state_cfg,
            retention=retention_cfg,
            logging=logging_cfg,
        )
