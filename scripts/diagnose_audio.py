"""List audio devices and show which ones AudioForma would attach to."""

import sounddevice as sd

from audioforma import config

print("-" * 40)
print("AUDIO DIAGNOSTICS")
print("-" * 40)

# 1. Host APIs
print("Host APIs:")
for api in sd.query_hostapis():
    print(f" - {api['name']}")

print("\n" + "-" * 20 + "\n")

# 2. Input devices
default_input = sd.default.device[0]
print("Input devices:")
for index, info in enumerate(sd.query_devices()):
    if info["max_input_channels"] <= 0:
        continue
    name = info["name"]
    tags = []
    if index == default_input:
        tags.append("default")
    if any(pattern in name.lower() for pattern in config.MONITOR_DEVICE_PATTERNS):
        tags.append("monitor fallback")
    suffix = f"  [{', '.join(tags)}]" if tags else ""
    print(f" {index:3d}  {name} ({info['default_samplerate']:.0f} Hz){suffix}")

print("\n" + "-" * 20 + "\n")

# 3. Can the default input be opened?
print("Opening default input:")
try:
    with sd.InputStream(channels=1, blocksize=config.BUFFER_SIZE):
        print(" OK")
except sd.PortAudioError as e:
    print(f" Failed: {e}")
