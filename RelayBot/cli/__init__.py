"""命令行入口 / Command-line entry."""
