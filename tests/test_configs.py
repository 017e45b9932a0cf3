from metrix.configs import AgentConfig, ServerConfig, new_agent_config, new_server_config


def test_agent_option_server_address():
    def option(cfg):
        cfg.server_address = "http://localhost:8080"

    assert new_agent_config(option).server_address == "http://localhost:8080"


def test_agent_option_server_endpoint():
    def option(cfg):
        cfg.server_endpoint = "/metrics"

    assert new_agent_config(option).server_endpoint == "/metrics"


def test_agent_option_log_level():
    def option(cfg):
        cfg.log_level = "debug"

    assert new_agent_config(option).log_level == "debug"


def test_agent_option_poll_interval():
    def option(cfg):
        cfg.poll_interval = 15

    assert new_agent_config(option).poll_interval == 15


def test_agent_option_report_interval():
    def option(cfg):
        cfg.report_interval = 30

    assert new_agent_config(option).report_interval == 30


def test_agent_option_num_workers():
    def option(cfg):
        cfg.num_workers = 4

    assert new_agent_config(option).num_workers == 4


def test_agent_options_apply_in_order():
    def first(cfg):
        cfg.log_level = "info"

    def second(cfg):
        cfg.log_level = "debug"

    assert new_agent_config(first, second).log_level == "debug"


def test_agent_config_without_options_is_empty():
    assert new_agent_config() == AgentConfig()


def test_new_server_config_default():
    cfg = new_server_config()
    assert cfg.address == ""
    assert cfg == ServerConfig()


def test_new_server_config_with_address():
    def option(cfg):
        cfg.address = "localhost:8080"

    cfg = new_server_config(option)
    assert cfg.address == "localhost:8080"