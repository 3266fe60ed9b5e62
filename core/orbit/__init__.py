"""轨道计算模块 - 包含轨道传播器和可见性计算"""
