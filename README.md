# sfucore

Building blocks of a selective forwarding unit (SFU), in plain Python with no
third-party dependencies.

## Modules

| Module | Purpose |
| --- | --- |
| `sfucore.audioobserver` | `AudioObserver` collects RTP audio levels (dBov) per stream and ranks the active speakers. |
| `sfucore.sequencer` | `Sequencer` keeps the source-to-target sequence number mapping of a down track so NACKs can be answered; `PacketMeta` holds one entry. |
| `sfucore.twcc` | `Responder` builds transport-wide congestion control RTCP feedback packets. |
| `sfucore.helpers` | `time_to_ntp`, `ntp_to_millis_since_epoch`, `modify_vp8_temporal_payload`, `codec_parameters_fuzzy_search`. |
| `sfucore.mediaengine` | `publisher_codecs()` and `publisher_header_extensions(kind)`: what a publisher is offered. |
| `sfucore.datachannel` | `Datachannel`, `ProcessArgs` and `chain` for middleware on data channel messages. |
| `sfucore.config` | `RouterConfig`, `SimulcastConfig`, `TurnConfig` and `TurnAuth`, built from plain dictionaries; `parse_turn_credentials`, `turn_port_range`. |
| `sfucore.session` | `SessionLocal`: the peers of one room, data channel fan-out and audio level broadcasts; `audio_levels_message`. |
| `sfucore.errors` | `SFUError` and its subclasses. |

## Installing

```
pip install .
```

## Examples

Ranking speakers:

```python
from sfucore.audioobserver import AudioObserver

observer = AudioObserver(threshold=40, interval=1000, filter=20)
observer.add_stream("alice")
observer.add_stream("bob")
for _ in range(12):
    observer.observe("alice", 20)
observer.observe("bob", 30)
print(observer.calc())   # ['alice']
print(observer.calc())   # [] : no stream is active any more
print(observer.calc())   # None : unchanged since the last call
```

Answering NACKs:

```python
from sfucore.sequencer import Sequencer

seq = Sequencer(500)
for sn in (2, 3, 4, 7, 8):
    seq.push(sn, sn + 5, 123, 3, True)
print([m.source_seq_no for m in seq.get_seq_no_pairs([9, 10, 13])])  # [4, 8]
```

A sequence number asked for again within 100 ms is not returned a second time.

Transport-wide congestion control feedback:

```python
from sfucore.twcc import Responder

packets = []
responder = Responder(ssrc=0x1234, sender_ssrc=0x5678)
responder.on_feedback(packets.append)
start = 1_000_000_000
for i in range(30):
    responder.push(i + 1, start + i * 5_000_000, False)
print(len(packets))  # 1
```

Feedback is sent once more than 20 sequence numbers are pending and 100 ms
have passed since the last report (50 ms after a marker, or at once beyond 100
pending).

Data channel middleware:

```python
from sfucore.datachannel import Datachannel, ProcessArgs

def upper(next_processor):
    def process(args):
        args.message = args.message.upper()
        next_processor(args)
    return process

dc = Datachannel("chat")
dc.use(upper)
dc.on_message(lambda args: print(args.message))
dc.processor()(ProcessArgs(peer=None, message="hi", data_channel=None))  # HI
```

Configuration from a dictionary (keys are matched regardless of case):

```python
from sfucore.config import RouterConfig, TurnConfig, turn_port_range

router = RouterConfig.from_dict({"MaxPacketTrack": 200, "simulcast": {"bestqualityfirst": True}})
turn = TurnConfig.from_dict({"enabled": True, "portrange": [40000, 41000]})
print(turn_port_range(turn))  # (40000, 41000)
```

Sessions:

```python
from sfucore.config import RouterConfig
from sfucore.datachannel import Datachannel
from sfucore.session import SessionLocal, audio_levels_message

session = SessionLocal("room-1", [Datachannel("ion-sfu")], RouterConfig(audio_level_interval=1000))
print(session.get_data_channel_labels())  # ['ion-sfu']
print(audio_levels_message(["a", "b"]))   # {"method":"audioLevels","params":["a","b"]}
session.close()
```

`SessionLocal` starts a background thread that broadcasts the current speakers
on every peer's open `ion-sfu` channel at each audio level interval; `close()`
stops it. Peers, subscribers, routers and data channels are passed in as
objects with the attributes listed in the class docstring.

## What this package does not do

It holds no WebRTC stack: it does not open peer connections, negotiate SDP,
receive or send RTP, or run a TURN server. There is no object that creates and
looks up sessions, no statistics export and no command-line program. The
transport objects a session works with must be supplied by the caller.

## Running the tests

```
pip install .[test]
pytest
```